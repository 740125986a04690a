from __future__ import annotations

import re

from interconnect_fixture.models import DeclaredNet, NetGroup, OuterPinNet, Pin

_C_HINT = re.compile(r"C\d+")
_X_HINT = re.compile(r"X\d+")

OUTER_KINDS = ("C", "X")


def pin_kind(pin: Pin) -> str:
    """Classify a pin as ``C``, ``X`` or ``IN`` from its hints."""
    for hint in pin.port_hints:
        if _C_HINT.fullmatch(hint):
            return "C"
        if _X_HINT.fullmatch(hint):
            return "X"
    return "IN"


def outer_pin_name(pin: Pin) -> str | None:
    for hint in pin.port_hints:
        if _C_HINT.fullmatch(hint) or _X_HINT.fullmatch(hint):
            return hint
    return None


def group_pins_into_nets(pins: list[Pin], nets: list[DeclaredNet]) -> dict[str, NetGroup]:
    groups: dict[str, NetGroup] = {}
    for pin in pins:
        groups.setdefault(pin.connectivity_key, NetGroup()).pins.append(pin)
    for net in nets:
        groups.setdefault(net.connectivity_key, NetGroup()).net = net
    return groups


def get_outer_pin_nets(groups: dict[str, NetGroup]) -> dict[str, OuterPinNet]:
    """Build the catalogue of user-selectable outer pins, keyed by display name.

    Each C or X pin becomes one entry carrying its whole chip net. Groups
    made only of inner pins are left out.
    """
    catalogue: dict[str, OuterPinNet] = {}
    for key, group in groups.items():
        for pin in group.pins:
            kind = pin_kind(pin)
            if kind not in OUTER_KINDS:
                continue
            name = outer_pin_name(pin)
            if name is None or name in catalogue:
                continue
            catalogue[name] = OuterPinNet(
                name=name,
                kind=kind,
                connectivity_key=key,
                pins=group.pins,
                outer_pin=pin,
            )
    return catalogue


def diagonal_partners(name: str, catalogue: dict[str, OuterPinNet]) -> list[str]:
    """Other X pins wired to the same chip net as ``name``."""
    outer = catalogue[name]
    return [
        other.name
        for other in catalogue.values()
        if other.kind == "X" and other.name != name and other.connectivity_key == outer.connectivity_key
    ]
