from __future__ import annotations

import logging
from collections.abc import Iterable

from interconnect_fixture.errors import ConnectivityError, ResolverStateError
from interconnect_fixture.models import NetGroup

logger = logging.getLogger(__name__)


class _UnionFind:
    def __init__(self):
        self._parent: dict[str, str] = {}
        self._size: dict[str, int] = {}

    def __contains__(self, x) -> bool:
        return x in self._parent

    def add(self, x: str):
        if x not in self._parent:
            self._parent[x] = x
            self._size[x] = 1

    def find(self, x: str) -> str:
        while self._parent[x] != x:
            self._parent[x] = self._parent[self._parent[x]]
            x = self._parent[x]
        return x

    def union(self, a: str, b: str) -> str:
        """Join the sets of ``a`` and ``b``; the larger set's root survives, ``a`` on ties."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return ra
        if self._size[ra] < self._size[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        self._size[ra] += self._size[rb]
        return ra


class ConnectivityResolver:
    """Maps pin hints to canonical net ids, folding in user-declared unions.

    Seeded once from the chip's net groups, where each group's connectivity
    key becomes the canonical id of all its pins' hints. ``merge`` may be
    called any number of times before, between and after ``resolve`` calls;
    merged nets never split again.
    """

    def __init__(self):
        self._uf = _UnionFind()
        self._hint_to_key: dict[str, str] = {}
        self._seeded = False

    @classmethod
    def from_net_groups(cls, groups: dict[str, NetGroup]) -> ConnectivityResolver:
        resolver = cls()
        resolver.seed(groups)
        return resolver

    @property
    def seeded(self) -> bool:
        return self._seeded

    def __contains__(self, hint) -> bool:
        return hint in self._hint_to_key

    def seed(self, groups: dict[str, NetGroup]):
        if self._seeded:
            raise ResolverStateError("Resolver has already been seeded")
        for key, group in groups.items():
            self._uf.add(key)
            for pin in group.pins:
                for hint in pin.port_hints:
                    self._attach(hint, key)
        self._seeded = True
        logger.debug("Seeded resolver with %d hints over %d nets", len(self._hint_to_key), len(groups))

    def merge(self, hint_groups: Iterable[Iterable[str]], context: str | None = None):
        self._check_seeded()
        for hints in hint_groups:
            hints = list(hints)
            if len(hints) < 2:
                continue
            keys = [self._key_for(hint, context) for hint in hints]
            root = keys[0]
            for key in keys[1:]:
                root = self._uf.union(root, key)
            logger.debug("Merged %s into %s", ", ".join(hints), root)

    def resolve(self, hint: str, context: str | None = None) -> str:
        self._check_seeded()
        return self._uf.find(self._key_for(hint, context))

    def register(self, hint: str, connectivity_key: str):
        """Attach a hint found after seeding to the net of ``connectivity_key``."""
        self._check_seeded()
        self._uf.add(connectivity_key)
        self._attach(hint, connectivity_key)

    def same_net(self, a: str, b: str) -> bool:
        return self.resolve(a) == self.resolve(b)

    def _attach(self, hint: str, key: str):
        existing = self._hint_to_key.get(hint)
        if existing is None:
            self._hint_to_key[hint] = key
        elif self._uf.find(existing) != self._uf.find(key):
            logger.debug("Hint %s appears in nets %s and %s; joining them", hint, existing, key)
            self._uf.union(existing, key)

    def _key_for(self, hint: str, context: str | None) -> str:
        try:
            return self._hint_to_key[hint]
        except KeyError:
            raise ConnectivityError(hint, context) from None

    def _check_seeded(self):
        if not self._seeded:
            raise ResolverStateError("Resolver must be seeded before use")
