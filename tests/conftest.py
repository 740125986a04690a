import pytest

from interconnect_fixture.loader import load_chip
from interconnect_fixture.nets import get_outer_pin_nets, group_pins_into_nets

GRID = 10
PITCH = 1.0
LEGACY_PAD = 0.3


def _xy(row, col):
    offset = (GRID - 1) * PITCH / 2
    return (-offset + col * PITCH, offset - row * PITCH)


def ring_positions():
    """Outer ring of the 10x10 grid, clockwise from the top-left corner."""
    positions = [(0, c) for c in range(10)]
    positions += [(r, 9) for r in range(1, 10)]
    positions += [(9, c) for c in range(8, -1, -1)]
    positions += [(r, 0) for r in range(8, 0, -1)]
    return positions


def inner_ring_positions():
    positions = [(1, c) for c in range(1, 9)]
    positions += [(r, 8) for r in range(2, 9)]
    positions += [(8, c) for c in range(7, 0, -1)]
    positions += [(r, 1) for r in range(7, 1, -1)]
    return positions


def x_partner_key(k):
    """X1..X8 pair with X9..X16; X17 pairs with X18."""
    if k <= 8:
        return f"net_X{k}"
    if k <= 16:
        return f"net_X{k - 8}"
    return "net_X17"


def build_chip_records():
    """A synthetic 100-pin chip on a 1 mm grid.

    The 36-pin ring alternates C and X pins. X pins sit on nine shared
    diagonal nets. The 28 pins just inside the ring are spread over the C
    nets in order, so each C net touches the next one; the 36 centre pins
    are inner-only.
    """
    records = []
    pins = []  # (pin_number, hints, key, (row, col))

    for i, pos in enumerate(ring_positions()):
        n = i + 1
        if i % 2 == 0:
            k = i // 2 + 1
            pins.append((n, [f"pin{n}", f"C{k}"], f"net_C{k}", pos))
        else:
            k = (i + 1) // 2
            pins.append((n, [f"pin{n}", f"X{k}"], x_partner_key(k), pos))

    inner_ring = {pos: j for j, pos in enumerate(inner_ring_positions())}
    n = 37
    for row in range(1, 9):
        for col in range(1, 9):
            tag = f"IN{n - 36}_R{row}_C{col}"
            if (row, col) in inner_ring:
                key = f"net_C{inner_ring[(row, col)] * 18 // 28 + 1}"
            else:
                key = f"net_IN_R{row}_C{col}"
            pins.append((n, [f"pin{n}", tag], key, (row, col)))
            n += 1

    for number, hints, key, _pos in pins:
        records.append({
            "type": "source_port",
            "source_port_id": f"source_port_{number}",
            "name": f"pin{number}",
            "pin_number": number,
            "port_hints": hints,
            "subcircuit_connectivity_map_key": key,
            "source_component_id": "source_component_0",
            "subcircuit_id": "subcircuit_0",
        })

    declared = [f"net_C{k}" for k in range(1, 19)] + [f"net_X{k}" for k in range(1, 9)] + ["net_X17"]
    for i, key in enumerate(declared):
        records.append({
            "type": "source_net",
            "source_net_id": f"source_net_{i}",
            "name": f"N{key}",
            "subcircuit_connectivity_map_key": key,
        })
    records.append({
        "type": "source_net",
        "source_net_id": "source_net_spare",
        "name": "NC_SPARE",
        "subcircuit_connectivity_map_key": "net_spare",
    })

    for k in range(1, 19):
        key = f"net_C{k}"
        members = [p for p in pins if p[2] == key]
        records.append({
            "type": "source_trace",
            "source_trace_id": f"source_trace_C{k}",
            "connected_source_port_ids": [f"source_port_{p[0]}" for p in members],
            "connected_source_net_ids": [f"source_net_{k - 1}"],
            "subcircuit_connectivity_map_key": key,
        })

    for number, hints, _key, (row, col) in pins:
        x, y = _xy(row, col)
        records.append({
            "type": "pcb_smtpad",
            "pcb_smtpad_id": f"pcb_smtpad_{number}",
            "pcb_port_id": f"pcb_port_{number}",
            "layer": "top",
            "shape": "rect" if number <= 36 else "circle",
            "width": LEGACY_PAD,
            "height": LEGACY_PAD,
            "x": x,
            "y": y,
            "port_hints": list(hints),
            "pcb_component_id": "pcb_component_0",
            "subcircuit_id": "subcircuit_0",
        })

    records.append({"type": "source_component", "source_component_id": "source_component_0", "name": "U1"})
    return records


@pytest.fixture
def chip_records():
    return build_chip_records()


@pytest.fixture
def chip(chip_records):
    return load_chip(chip_records)


@pytest.fixture
def net_groups(chip):
    return group_pins_into_nets(chip.pins, chip.nets)


@pytest.fixture
def catalogue(net_groups):
    return get_outer_pin_nets(net_groups)
