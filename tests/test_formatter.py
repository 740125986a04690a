from interconnect_fixture.connections import UserConnection
from interconnect_fixture.formatter import format_catalogue, format_record_tally, format_summary
from interconnect_fixture.models import ChipModel


def _rows(output):
    return {line.split()[0]: line.split() for line in output.splitlines()[1:]}


def test_format_catalogue(chip, catalogue):
    output = format_catalogue(catalogue, chip.pads)
    lines = output.splitlines()
    assert lines[0].split() == ["Pin", "Kind", "No", "Edge", "Net"]
    assert len(lines) == 37
    rows = _rows(output)
    assert rows["C1"] == ["C1", "C", "1", "top"]
    assert rows["X9"] == ["X9", "X", "18", "right"]
    assert rows["C10"] == ["C10", "C", "19", "bottom"]


def test_format_catalogue_shows_connection_names(chip, catalogue):
    conns = [UserConnection("conn_1", "VCC", ("C1", "C2"))]
    rows = _rows(format_catalogue(catalogue, chip.pads, conns))
    assert rows["C1"][-1] == "VCC"
    assert rows["C2"][-1] == "VCC"
    assert rows["C3"][-1] == "top"


def test_format_summary(chip, net_groups, catalogue):
    output = format_summary(chip, net_groups, catalogue)
    assert "Pins: 100 (C: 18, X: 18, IN: 64)" in output
    assert "Declared nets: 28" in output
    assert "Net groups: 64 (36 inner-only)" in output
    assert "Pads: 100" in output
    assert "Outer pins: C1, X1, X9, C2" in output


def test_format_summary_empty():
    output = format_summary(ChipModel(pins=[], nets=[]), {}, {})
    assert "Pins: 0 (C: 0, X: 0, IN: 0)" in output
    assert "Outer pins: (none)" in output


def test_format_record_tally():
    records = [{"type": "pcb_trace"}, {"type": "source_port"}, {"type": "pcb_trace"}]
    assert format_record_tally(records) == "pcb_trace: 2, source_port: 1\n"
