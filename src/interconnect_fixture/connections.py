from __future__ import annotations

from dataclasses import dataclass, replace

from interconnect_fixture.errors import ConfigError, ConnectionPolicyError
from interconnect_fixture.models import OuterPinNet
from interconnect_fixture.nets import diagonal_partners

PALETTE = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)


@dataclass(frozen=True)
class UserConnection:
    id: str
    name: str
    outer_pin_names: tuple[str, ...] = ()
    color: str = PALETTE[0]

    @classmethod
    def from_dict(cls, data: dict) -> UserConnection:
        pin_names = data.get("outerPinNames", ())
        if not isinstance(pin_names, (list, tuple)):
            raise ConfigError(f"Connection {data['id']}: outerPinNames must be a list, got {pin_names!r}")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            outer_pin_names=tuple(pin_names),
            color=data.get("color") or color_for_net(str(data["id"])),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "outerPinNames": list(self.outer_pin_names),
            "color": self.color,
        }


def color_by_index(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def color_for_net(net_id: str) -> str:
    """Stable palette colour for an id (31-multiplier hash, 32-bit wrap)."""
    h = 0
    for ch in net_id:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return PALETTE[abs(h) % len(PALETTE)]


def pin_to_connection(connections: list[UserConnection]) -> dict[str, UserConnection]:
    """Map each grouped outer pin name to its connection; the first connection wins."""
    result: dict[str, UserConnection] = {}
    for conn in connections:
        for name in conn.outer_pin_names:
            result.setdefault(name, conn)
    return result


def create_connection(connections: list[UserConnection]) -> list[UserConnection]:
    number = len(connections) + 1
    existing = {c.id for c in connections}
    conn_id = f"conn_{number}"
    while conn_id in existing:
        number += 1
        conn_id = f"conn_{number}"
    new = UserConnection(
        id=conn_id,
        name=f"NET{len(connections) + 1}",
        color=color_by_index(len(connections)),
    )
    return [*connections, new]


def remove_connection(connections: list[UserConnection], connection_id: str) -> list[UserConnection]:
    _find(connections, connection_id)
    return [c for c in connections if c.id != connection_id]


def rename_connection(
    connections: list[UserConnection], connection_id: str, name: str
) -> list[UserConnection]:
    _find(connections, connection_id)
    return [replace(c, name=name) if c.id == connection_id else c for c in connections]


def add_pin(
    connections: list[UserConnection],
    connection_id: str,
    pin_name: str,
    catalogue: dict[str, OuterPinNet],
) -> list[UserConnection]:
    """Add an outer pin to a connection, enforcing the C/X grouping rules.

    An X pin only goes into an empty connection and brings its diagonal
    partner with it. A C pin cannot join a connection holding X pins.
    """
    conn = _find(connections, connection_id)
    outer = catalogue.get(pin_name)
    if outer is None:
        raise ConnectionPolicyError(connection_id, f"unknown outer pin {pin_name!r}")
    if pin_name in conn.outer_pin_names:
        return list(connections)

    if outer.kind == "X":
        if conn.outer_pin_names:
            raise ConnectionPolicyError(connection_id, "X pins cannot be connected with other pins")
        added = (pin_name, *diagonal_partners(pin_name, catalogue))
    else:
        if any(_kind(name, catalogue) == "X" for name in conn.outer_pin_names):
            raise ConnectionPolicyError(connection_id, "cannot add C pins to a connection with X pins")
        added = (pin_name,)

    updated = replace(conn, outer_pin_names=conn.outer_pin_names + added)
    return [updated if c.id == connection_id else c for c in connections]


def remove_pin(
    connections: list[UserConnection], connection_id: str, pin_name: str
) -> list[UserConnection]:
    conn = _find(connections, connection_id)
    updated = replace(conn, outer_pin_names=tuple(n for n in conn.outer_pin_names if n != pin_name))
    return [updated if c.id == connection_id else c for c in connections]


def validate_connections(connections: list[UserConnection], catalogue: dict[str, OuterPinNet]):
    """Re-check the grouping rules on a connection snapshot loaded from elsewhere."""
    seen_ids: set[str] = set()
    for conn in connections:
        if conn.id in seen_ids:
            raise ConnectionPolicyError(conn.id, "duplicate connection id")
        seen_ids.add(conn.id)
        for name in conn.outer_pin_names:
            if name not in catalogue:
                raise ConnectionPolicyError(conn.id, f"unknown outer pin {name!r}")
        x_pins = [n for n in conn.outer_pin_names if catalogue[n].kind == "X"]
        if not x_pins:
            continue
        if len(x_pins) != len(conn.outer_pin_names):
            raise ConnectionPolicyError(conn.id, "X pins cannot be connected with other pins")
        keys = {catalogue[n].connectivity_key for n in x_pins}
        if len(keys) > 1:
            raise ConnectionPolicyError(conn.id, "only one X diagonal pair may share a connection")


def _find(connections: list[UserConnection], connection_id: str) -> UserConnection:
    for conn in connections:
        if conn.id == connection_id:
            return conn
    raise ConnectionPolicyError(connection_id, "no such connection")


def _kind(name: str, catalogue: dict[str, OuterPinNet]) -> str | None:
    outer = catalogue.get(name)
    return outer.kind if outer else None
