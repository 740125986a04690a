from __future__ import annotations

import logging

from interconnect_fixture.layout import DEFAULT_LAYOUT, ChipLayout
from interconnect_fixture.models import Bridge, OuterPinNet, Pad

logger = logging.getLogger(__name__)


def pads_for_net(net: OuterPinNet, pads: list[Pad]) -> list[Pad]:
    """Pads sharing a hint with any pin of ``net``, in chip pad order."""
    hints = {hint for pin in net.pins for hint in pin.port_hints}
    return [pad for pad in pads if any(hint in hints for hint in pad.port_hints)]


def is_adjacent(a: Pad, b: Pad, layout: ChipLayout = DEFAULT_LAYOUT) -> bool:
    dx = abs(a.x - b.x)
    dy = abs(a.y - b.y)
    if dx > layout.adjacency_tolerance or dy > layout.adjacency_tolerance:
        return False
    return dx > layout.identity_epsilon or dy > layout.identity_epsilon


def find_bridge(
    net1: OuterPinNet,
    net2: OuterPinNet,
    pads: list[Pad],
    layout: ChipLayout = DEFAULT_LAYOUT,
) -> Bridge | None:
    """Return the first physically adjacent pad pair between two nets, if any."""
    pads2 = pads_for_net(net2, pads)
    for pad1 in pads_for_net(net1, pads):
        for pad2 in pads2:
            if is_adjacent(pad1, pad2, layout):
                return Bridge(from_pad=pad1, to_pad=pad2)
    return None


def find_chain_bridges(
    nets: list[OuterPinNet],
    pads: list[Pad],
    layout: ChipLayout = DEFAULT_LAYOUT,
) -> list[tuple[int, Bridge]]:
    """Bridges between consecutive C-kind nets of a user-ordered chain.

    Non-C entries are dropped before pairing. Returns ``(index, bridge)``
    where ``index`` is the position of the pair's first net in the C chain.
    """
    chain = [net for net in nets if net.kind == "C"]
    bridges = []
    for i in range(len(chain) - 1):
        bridge = find_bridge(chain[i], chain[i + 1], pads, layout)
        if bridge is None:
            logger.warning("No adjacent pads between %s and %s", chain[i].name, chain[i + 1].name)
            continue
        logger.debug(
            "Bridge %s-%s via %s -> %s",
            chain[i].name, chain[i + 1].name,
            bridge.from_pad.pcb_smtpad_id, bridge.to_pad.pcb_smtpad_id,
        )
        bridges.append((i, bridge))
    return bridges
