from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass

from interconnect_fixture.bridges import find_chain_bridges
from interconnect_fixture.connections import UserConnection, pin_to_connection
from interconnect_fixture.errors import ConnectivityError
from interconnect_fixture.layout import DEFAULT_LAYOUT, ChipLayout
from interconnect_fixture.models import ChipModel, OuterPinNet, Pad, Pin
from interconnect_fixture.nets import group_pins_into_nets, outer_pin_name, pin_kind
from interconnect_fixture.resolver import ConnectivityResolver

logger = logging.getLogger(__name__)

EDGES = ("top", "right", "bottom", "left")


@dataclass
class _OuterEntry:
    name: str
    net: OuterPinNet
    pad: Pad | None
    group: str | None


def generate_test_fixture(
    chip: ChipModel,
    outer_pin_nets: dict[str, OuterPinNet],
    user_connections: list[UserConnection],
    layout: ChipLayout = DEFAULT_LAYOUT,
) -> list[dict]:
    """Build a bench test fixture circuit for the given pin groupings.

    Every chip pad is reproduced at true scale. Each outer pin additionally
    gets a standard interconnect pad, a test pad on the fixture perimeter,
    a trace between the two and a silkscreen label. Consecutive C pins of
    a connection are bridged where their nets have adjacent pads.
    """
    gen = _Generator("test_fixture", chip, outer_pin_nets, user_connections, layout)
    gen.emit_source_records()
    gen.emit_fixture_component()
    gen.emit_chip_pads()
    gen.emit_test_pads()
    gen.emit_bridges()
    return gen.finish()


def generate_footprint(
    chip: ChipModel,
    outer_pin_nets: dict[str, OuterPinNet],
    user_connections: list[UserConnection],
    layout: ChipLayout = DEFAULT_LAYOUT,
) -> list[dict]:
    """Build the bare footprint: true-scale pads and routing, no test bench."""
    gen = _Generator("footprint", chip, outer_pin_nets, user_connections, layout)
    gen.emit_source_records()
    gen.emit_footprint_component()
    gen.emit_chip_pads()
    gen.emit_internal_routing()
    gen.emit_bridges()
    return gen.finish()


def edge_for_position(x: float, y: float) -> str:
    """Pick the fixture edge for a pad by its dominant axis and sign."""
    if abs(x) > abs(y):
        return "right" if x > 0 else "left"
    return "top" if y > 0 else "bottom"


def layout_test_pads(
    positions: dict[str, tuple[float, float]],
    layout: ChipLayout = DEFAULT_LAYOUT,
) -> tuple[dict[str, tuple[float, float]], float]:
    """Place one test pad per pin around a square, centered on each edge.

    ``positions`` maps pin names to their chip pad centers. Returns the test
    pad centers and the side length of the square they sit on.
    """
    by_edge: dict[str, list[tuple[str, float]]] = {edge: [] for edge in EDGES}
    for name, (x, y) in positions.items():
        edge = edge_for_position(x, y)
        along = x if edge in ("top", "bottom") else y
        by_edge[edge].append((name, along))

    by_edge["top"].sort(key=lambda p: p[1])
    by_edge["bottom"].sort(key=lambda p: p[1])
    # left and right run top to bottom
    by_edge["left"].sort(key=lambda p: -p[1])
    by_edge["right"].sort(key=lambda p: -p[1])

    pitch = layout.test_pad_pitch
    busiest = max(len(pins) for pins in by_edge.values())
    size = max(layout.fixture_min_size, (busiest - 1) * pitch + layout.fixture_margin)
    half = size / 2

    placed: dict[str, tuple[float, float]] = {}
    for edge, pins in by_edge.items():
        start = (len(pins) - 1) * pitch / 2
        for idx, (name, _along) in enumerate(pins):
            offset = idx * pitch
            if edge == "top":
                placed[name] = (-start + offset, half)
            elif edge == "bottom":
                placed[name] = (-start + offset, -half)
            elif edge == "left":
                placed[name] = (-half, start - offset)
            else:
                placed[name] = (half, start - offset)
    return placed, size


def _label_anchor(x: float, y: float, offset: float) -> tuple[float, float, str]:
    edge = edge_for_position(x, y)
    if edge == "right":
        return x + offset, y, "center_left"
    if edge == "left":
        return x - offset, y, "center_right"
    if edge == "top":
        return x, y + offset, "bottom_center"
    return x, y - offset, "top_center"


def _point(x: float, y: float, width: float) -> dict:
    return {"route_type": "wire", "x": x, "y": y, "width": width, "layer": "top"}


class _Generator:
    def __init__(
        self,
        prefix: str,
        chip: ChipModel,
        outer_pin_nets: dict[str, OuterPinNet],
        user_connections: list[UserConnection],
        layout: ChipLayout,
    ):
        self.prefix = prefix
        self.chip = chip
        self.catalogue = outer_pin_nets
        self.connections = list(user_connections)
        self.layout = layout
        self.records: list[dict] = []
        self._counters: Counter = Counter()

        self.component_id = f"{prefix}_component"
        self.pcb_component_id = f"{prefix}_pcb_component"
        self.subcircuit_id = f"{prefix}_subcircuit"

        self.resolver = ConnectivityResolver.from_net_groups(
            group_pins_into_nets(chip.pins, chip.nets)
        )
        for conn in self.connections:
            self.resolver.merge([conn.outer_pin_names], context=f"connection {conn.id}")

        self._pin_by_hint: dict[str, Pin] = {}
        for pin in chip.pins:
            for hint in pin.port_hints:
                self._pin_by_hint.setdefault(hint, pin)

        # a net shared by several connections is named after the first of them
        self.group_name_by_key: dict[str, str] = {}
        for conn in self.connections:
            if conn.outer_pin_names:
                key = self.resolver.resolve(conn.outer_pin_names[0], context=f"connection {conn.id}")
                self.group_name_by_key.setdefault(key, conn.name)

        grouped = pin_to_connection(self.connections)
        self.outer_entries = [
            _OuterEntry(
                name,
                net,
                self._pad_for_pin(net.outer_pin),
                self.group_name_by_key[self.resolver.resolve(name)] if name in grouped else None,
            )
            for name, net in self.catalogue.items()
        ]

        self.port_by_outer_name: dict[str, str] = {}
        self.ports_by_key: dict[str, list[str]] = defaultdict(list)
        self.net_by_key: dict[str, dict] = {}
        self.trace_by_key: dict[str, dict] = {}
        self._inner_ports: dict[str, str] = {}
        self.test_positions: dict[str, tuple[float, float]] = {}
        self.fixture_size = 0.0

    def next_id(self, kind: str) -> str:
        n = self._counters[kind]
        self._counters[kind] += 1
        return f"{self.prefix}_{kind}_{n}"

    def add(self, record: dict) -> dict:
        self.records.append(record)
        return record

    def finish(self) -> list[dict]:
        tally = Counter(r["type"] for r in self.records)
        logger.debug("Generated %s: %s", self.prefix, dict(sorted(tally.items())))
        return self.records

    def emit_source_records(self):
        self.add({
            "type": "source_component",
            "source_component_id": self.component_id,
            "name": self.prefix,
            "ftype": "simple_chip",
        })
        self._emit_outer_ports()
        self._emit_nets()
        self._emit_traces()

    def _emit_outer_ports(self):
        for entry in self.outer_entries:
            key = self.resolver.resolve(entry.name, context=f"outer pin {entry.name}")
            name = f"{entry.group}_{entry.name}" if entry.group else entry.name
            port_id = self._emit_port(name, [entry.name], key)
            self.port_by_outer_name[entry.name] = port_id

    def _emit_port(self, name: str, hints: list[str], key: str) -> str:
        port_id = self.next_id("port")
        self.add({
            "type": "source_port",
            "source_port_id": port_id,
            "name": name,
            "source_component_id": self.component_id,
            "subcircuit_id": self.subcircuit_id,
            "pin_number": self._counters["port"],
            "port_hints": list(hints),
            "subcircuit_connectivity_map_key": key,
        })
        self.ports_by_key[key].append(port_id)
        return port_id

    def _emit_net(self, name: str, key: str) -> dict:
        net = self.add({
            "type": "source_net",
            "source_net_id": self.next_id("net"),
            "name": name,
            "subcircuit_connectivity_map_key": key,
        })
        self.net_by_key[key] = net
        return net

    def _emit_nets(self):
        for key, name in self.group_name_by_key.items():
            self._emit_net(name, key)
        for entry in self.outer_entries:
            key = self.resolver.resolve(entry.name)
            if key not in self.net_by_key:
                self._emit_net(f"N_{entry.name}", key)

    def _emit_traces(self):
        for conn in self.connections:
            if len(conn.outer_pin_names) < 2:
                if conn.outer_pin_names:
                    logger.warning("Connection %s has a single pin; no trace emitted", conn.id)
                continue
            key = self.resolver.resolve(conn.outer_pin_names[0], context=f"connection {conn.id}")
            if key in self.trace_by_key:
                continue
            self.trace_by_key[key] = self.add({
                "type": "source_trace",
                "source_trace_id": self.next_id("trace"),
                "connected_source_port_ids": list(self.ports_by_key[key]),
                "connected_source_net_ids": [self.net_by_key[key]["source_net_id"]],
                "subcircuit_connectivity_map_key": key,
                "display_name": conn.name,
            })

    def emit_fixture_component(self):
        self.test_positions, self.fixture_size = layout_test_pads(
            {e.name: (e.pad.x, e.pad.y) for e in self.outer_entries if e.pad is not None},
            self.layout,
        )
        self._emit_pcb_component(self.fixture_size)
        board_size = max(self.layout.board_min_size, self.fixture_size + 2 * self.layout.board_margin)
        self.add({
            "type": "pcb_board",
            "pcb_board_id": f"{self.prefix}_board",
            "center": {"x": 0, "y": 0},
            "width": board_size,
            "height": board_size,
        })

    def emit_footprint_component(self):
        self._emit_pcb_component(self.layout.footprint_size)

    def _emit_pcb_component(self, size: float):
        self.add({
            "type": "pcb_component",
            "pcb_component_id": self.pcb_component_id,
            "source_component_id": self.component_id,
            "center": {"x": 0, "y": 0},
            "layer": "top",
            "rotation": 0,
            "width": size,
            "height": size,
        })

    def emit_chip_pads(self):
        """Reproduce every chip pad, giving inner pads a port of their own."""
        for pad in self.chip.pads:
            pin = self._pin_for_pad(pad)
            for hint in pad.port_hints:
                if hint not in self.resolver:
                    self.resolver.register(hint, pin.connectivity_key)
            name = outer_pin_name(pin)
            if pin_kind(pin) != "IN" and name in self.port_by_outer_name:
                source_port_id = self.port_by_outer_name[name]
            else:
                source_port_id = self._inner_port(pin)
            self._emit_pad(pad.x, pad.y, pad.width, pad.height, pad.shape, pad.layer,
                           pad.port_hints, source_port_id, kind="chip_pad")

    def _inner_port(self, pin: Pin) -> str:
        if pin.source_port_id in self._inner_ports:
            return self._inner_ports[pin.source_port_id]
        key = self.resolver.resolve(pin.port_hints[0], context=f"pin {pin.name}")
        port_id = self._emit_port(pin.name, pin.port_hints, key)
        self._inner_ports[pin.source_port_id] = port_id
        if key not in self.net_by_key:
            self._emit_net(f"N_{pin.port_hints[-1]}", key)
        trace = self.trace_by_key.get(key)
        if trace is not None:
            trace["connected_source_port_ids"].append(port_id)
        return port_id

    def _emit_pad(self, x, y, width, height, shape, layer, hints, source_port_id, kind) -> str:
        pcb_port_id = self.next_id(f"pcb_port_{kind}")
        self.add({
            "type": "pcb_port",
            "pcb_port_id": pcb_port_id,
            "source_port_id": source_port_id,
            "pcb_component_id": self.pcb_component_id,
            "x": x,
            "y": y,
            "layers": [layer],
        })
        pad = {
            "type": "pcb_smtpad",
            "pcb_smtpad_id": self.next_id(kind),
            "pcb_port_id": pcb_port_id,
            "pcb_component_id": self.pcb_component_id,
            "shape": shape,
            "x": x,
            "y": y,
            "width": width,
            "height": height,
            "layer": layer,
            "port_hints": list(hints),
        }
        if shape == "circle":
            pad["radius"] = width / 2
        self.add(pad)
        return pcb_port_id

    def emit_test_pads(self):
        size = self.layout.interconnect_pad_size
        test_size = self.layout.test_pad_size
        width = self.layout.trace_width
        for entry in self.outer_entries:
            if entry.pad is None:
                continue
            source_port_id = self.port_by_outer_name[entry.name]
            x, y = entry.pad.x, entry.pad.y
            self._emit_pad(x, y, size, size, "rect", "top", [entry.name], source_port_id,
                           kind="interconnect_pad")

            tx, ty = self.test_positions[entry.name]
            self._emit_pad(tx, ty, test_size, test_size, "rect", "top", [f"TEST_{entry.name}"],
                           source_port_id, kind="test_pad")
            trace = {
                "type": "pcb_trace",
                "pcb_trace_id": self.next_id("pcb_trace"),
                "subcircuit_connectivity_map_key": self.resolver.resolve(entry.name),
                "route": [_point(x, y, width), _point(tx, ty, width)],
            }
            source_trace = self.trace_by_key.get(self.resolver.resolve(entry.name))
            if source_trace is not None:
                trace["source_trace_id"] = source_trace["source_trace_id"]
            self.add(trace)
            self._emit_labels(entry, tx, ty)
        self._emit_test_pad_outline()

    def _emit_labels(self, entry: _OuterEntry, tx: float, ty: float):
        offset = self.layout.test_pad_size / 2 + self.layout.label_offset
        lx, ly, alignment = _label_anchor(tx, ty, offset)
        self._emit_text(entry.name, lx, ly, alignment)
        if entry.group is None:
            return
        # the group name sits one line further out on the top edge, beneath elsewhere
        spacing = self.layout.group_label_spacing
        if edge_for_position(tx, ty) == "top":
            self._emit_text(entry.group, lx, ly + spacing, alignment)
        else:
            self._emit_text(entry.group, lx, ly - spacing, alignment)

    def _emit_text(self, text: str, x: float, y: float, alignment: str):
        self.add({
            "type": "pcb_silkscreen_text",
            "pcb_silkscreen_text_id": self.next_id("text"),
            "pcb_component_id": self.pcb_component_id,
            "text": text,
            "anchor_position": {"x": x, "y": y},
            "anchor_alignment": alignment,
            "layer": "top",
            "font_size": self.layout.label_font_size,
        })

    def _emit_test_pad_outline(self):
        half = self.fixture_size / 2 + self.layout.test_pad_size / 2 + self.layout.outline_margin
        left, right, bottom, top = -half, half, -half, half
        self.add({
            "type": "pcb_silkscreen_path",
            "pcb_silkscreen_path_id": self.next_id("outline"),
            "pcb_component_id": self.pcb_component_id,
            "layer": "top",
            "route": [
                {"x": left, "y": top},
                {"x": right, "y": top},
                {"x": right, "y": bottom},
                {"x": left, "y": bottom},
                {"x": left, "y": top},
            ],
            "stroke_width": self.layout.outline_stroke_width,
        })

    def emit_internal_routing(self):
        """Route the chip's own traces that lie inside user-connected nets."""
        pins_by_id = {pin.source_port_id: pin for pin in self.chip.pins}
        width = self.layout.trace_width
        routed: set[str] = set()
        for conn in self.connections:
            if len(conn.outer_pin_names) < 2:
                continue
            key = self.resolver.resolve(conn.outer_pin_names[0], context=f"connection {conn.id}")
            if key in routed:
                continue
            routed.add(key)
            for i, trace in enumerate(self._traces_in_net(key, pins_by_id)):
                points = []
                for port_id in trace.connected_source_port_ids:
                    pad = self._pad_for_pin(pins_by_id[port_id])
                    if pad is not None:
                        points.append(_point(pad.x, pad.y, width))
                if len(points) < 2:
                    continue
                self.add({
                    "type": "pcb_trace",
                    "pcb_trace_id": f"{self.prefix}_trace_{conn.id}_{i}",
                    "source_trace_id": self.trace_by_key[key]["source_trace_id"],
                    "subcircuit_connectivity_map_key": key,
                    "route": points,
                })

    def _traces_in_net(self, key: str, pins_by_id: dict[str, Pin]):
        for trace in self.chip.traces:
            pins = [pins_by_id.get(port_id) for port_id in trace.connected_source_port_ids]
            if len(pins) < 2 or any(pin is None for pin in pins):
                continue
            if all(self.resolver.resolve(pin.port_hints[0]) == key for pin in pins):
                yield trace

    def emit_bridges(self):
        width = self.layout.trace_width
        for conn in self.connections:
            if len(conn.outer_pin_names) < 2:
                continue
            nets = [self.catalogue[name] for name in conn.outer_pin_names if name in self.catalogue]
            for i, bridge in find_chain_bridges(nets, self.chip.pads, self.layout):
                start, end = bridge.from_pad, bridge.to_pad
                self.add({
                    "type": "pcb_trace",
                    "pcb_trace_id": f"{self.prefix}_net_trace_{conn.id}_{i}",
                    "subcircuit_connectivity_map_key": self._pad_key(start),
                    "route": [_point(start.x, start.y, width), _point(end.x, end.y, width)],
                })

    def _pad_key(self, pad: Pad) -> str:
        for hint in pad.port_hints:
            if hint in self.resolver:
                return self.resolver.resolve(hint)
        raise ConnectivityError(pad.port_hints[0] if pad.port_hints else "", f"pad {pad.pcb_smtpad_id}")

    def _pin_for_pad(self, pad: Pad) -> Pin:
        for hint in pad.port_hints:
            pin = self._pin_by_hint.get(hint)
            if pin is not None:
                return pin
        raise ConnectivityError(
            pad.port_hints[0] if pad.port_hints else "", f"pad {pad.pcb_smtpad_id} matches no pin"
        )

    def _pad_for_pin(self, pin: Pin) -> Pad | None:
        hints = set(pin.port_hints)
        for pad in self.chip.pads:
            if hints.intersection(pad.port_hints):
                return pad
        return None
