from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Pin:
    source_port_id: str
    name: str
    pin_number: int
    port_hints: list[str]
    connectivity_key: str
    source_component_id: str = ""
    subcircuit_id: str = ""


@dataclass
class DeclaredNet:
    source_net_id: str
    name: str
    connectivity_key: str


@dataclass
class Trace:
    source_trace_id: str
    connected_source_port_ids: list[str]
    connected_source_net_ids: list[str]
    connectivity_key: str
    display_name: str | None = None


@dataclass
class Pad:
    pcb_smtpad_id: str
    pcb_port_id: str
    layer: str
    shape: str
    width: float
    height: float
    x: float
    y: float
    port_hints: list[str]
    pcb_component_id: str = ""
    subcircuit_id: str = ""


@dataclass
class ChipModel:
    pins: list[Pin]
    nets: list[DeclaredNet]
    traces: list[Trace] = field(default_factory=list)
    pads: list[Pad] = field(default_factory=list)


@dataclass
class NetGroup:
    pins: list[Pin] = field(default_factory=list)
    net: DeclaredNet | None = None


@dataclass
class OuterPinNet:
    """An outer pin a user can route to, plus every pin of its chip net."""

    name: str
    kind: str
    connectivity_key: str
    pins: list[Pin]
    outer_pin: Pin


@dataclass
class Bridge:
    from_pad: Pad
    to_pad: Pad
