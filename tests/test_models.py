from interconnect_fixture.models import ChipModel, DeclaredNet, NetGroup, OuterPinNet, Pad, Pin, Trace


def _pin(number=1, hints=None, key="net_1"):
    return Pin(
        source_port_id=f"source_port_{number}",
        name=f"pin{number}",
        pin_number=number,
        port_hints=hints or [f"pin{number}", "C1"],
        connectivity_key=key,
    )


def test_pin_creation():
    pin = _pin()
    assert pin.pin_number == 1
    assert pin.port_hints == ["pin1", "C1"]
    assert pin.connectivity_key == "net_1"
    assert pin.source_component_id == ""
    assert pin.subcircuit_id == ""


def test_declared_net():
    net = DeclaredNet(source_net_id="source_net_0", name="NnetC1", connectivity_key="net_1")
    assert net.name == "NnetC1"
    assert net.connectivity_key == "net_1"


def test_trace_defaults():
    trace = Trace("source_trace_0", ["source_port_1", "source_port_2"], [], "net_1")
    assert trace.display_name is None
    assert len(trace.connected_source_port_ids) == 2


def test_pad_fields():
    pad = Pad("pcb_smtpad_1", "pcb_port_1", "top", "rect", 0.5, 0.5, -4.5, 4.5, ["pin1", "C1"])
    assert (pad.x, pad.y) == (-4.5, 4.5)
    assert pad.pcb_component_id == ""


def test_chip_model_defaults():
    """Traces and pads default to empty lists."""
    chip = ChipModel(pins=[], nets=[])
    assert chip.traces == []
    assert chip.pads == []


def test_net_group_defaults_are_independent():
    a = NetGroup()
    b = NetGroup()
    a.pins.append(_pin())
    assert b.pins == []
    assert a.net is None


def test_outer_pin_net_keeps_group_pins():
    outer = _pin(1)
    inner = _pin(37, ["pin37", "IN1_R1_C1"])
    net = OuterPinNet(name="C1", kind="C", connectivity_key="net_1", pins=[outer, inner], outer_pin=outer)
    assert net.outer_pin is outer
    assert [p.pin_number for p in net.pins] == [1, 37]
