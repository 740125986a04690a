from __future__ import annotations

from collections import Counter

from interconnect_fixture.connections import UserConnection, pin_to_connection
from interconnect_fixture.generator import edge_for_position
from interconnect_fixture.models import ChipModel, NetGroup, OuterPinNet, Pad
from interconnect_fixture.nets import pin_kind


def format_catalogue(
    catalogue: dict[str, OuterPinNet],
    pads: list[Pad],
    connections: list[UserConnection] | None = None,
) -> str:
    grouped = pin_to_connection(connections or [])
    rows = []
    for name, outer in catalogue.items():
        pad = _pad_for(outer, pads)
        edge = edge_for_position(pad.x, pad.y) if pad else "-"
        conn = grouped.get(name)
        rows.append((name, outer.kind, str(outer.outer_pin.pin_number), edge, conn.name if conn else ""))

    name_width = max(len("Pin"), max((len(r[0]) for r in rows), default=0))
    num_width = max(len("No"), max((len(r[2]) for r in rows), default=0))
    lines = [f"{'Pin':<{name_width}}  Kind  {'No':>{num_width}}  {'Edge':<6}  Net"]
    for name, kind, number, edge, net in rows:
        lines.append(f"{name:<{name_width}}  {kind:<4}  {number:>{num_width}}  {edge:<6}  {net}".rstrip())
    return "\n".join(lines) + "\n"


def format_summary(chip: ChipModel, groups: dict[str, NetGroup], catalogue: dict[str, OuterPinNet]) -> str:
    kinds = Counter(pin_kind(pin) for pin in chip.pins)
    inner_only = sum(1 for g in groups.values() if g.pins and all(pin_kind(p) == "IN" for p in g.pins))
    lines = [
        f"Pins: {len(chip.pins)} (C: {kinds['C']}, X: {kinds['X']}, IN: {kinds['IN']})",
        f"Declared nets: {len(chip.nets)}",
        f"Net groups: {len(groups)} ({inner_only} inner-only)",
        f"Traces: {len(chip.traces)}",
        f"Pads: {len(chip.pads)}",
        "",
        "Outer pins: " + (", ".join(catalogue) if catalogue else "(none)"),
    ]
    return "\n".join(lines) + "\n"


def format_record_tally(records: list[dict]) -> str:
    tally = Counter(r.get("type", "?") for r in records)
    return ", ".join(f"{t}: {n}" for t, n in sorted(tally.items())) + "\n"


def _pad_for(outer: OuterPinNet, pads: list[Pad]) -> Pad | None:
    hints = set(outer.outer_pin.port_hints)
    for pad in pads:
        if hints.intersection(pad.port_hints):
            return pad
    return None
