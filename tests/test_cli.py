import json
import subprocess
import sys

import pytest


def _run(*args):
    return subprocess.run(
        [sys.executable, "-m", "interconnect_fixture.cli", *args],
        capture_output=True,
        text=True,
    )


@pytest.fixture
def chip_file(tmp_path, chip_records):
    path = tmp_path / "chip.circuit.json"
    path.write_text(json.dumps({"objects": chip_records}))
    return str(path)


@pytest.fixture
def connections_file(tmp_path):
    path = tmp_path / "connections.json"
    path.write_text(json.dumps([
        {"id": "conn_1", "name": "SIGNAL", "outerPinNames": ["C1", "C2", "C3"], "color": "#0000FF"},
        {"id": "conn_2", "name": "PAIR", "outerPinNames": ["X1", "X9"], "color": "#FF0000"},
    ]))
    return str(path)


def test_cli_summary(chip_file):
    result = _run("summary", chip_file)
    assert result.returncode == 0
    assert "Pins: 100 (C: 18, X: 18, IN: 64)" in result.stdout


def test_cli_pins(chip_file, connections_file):
    result = _run("pins", chip_file, "--connections", connections_file)
    assert result.returncode == 0
    assert "SIGNAL" in result.stdout
    assert "X18" in result.stdout


def test_cli_fixture_to_stdout(chip_file, connections_file):
    result = _run("fixture", chip_file, "-c", connections_file)
    assert result.returncode == 0
    records = json.loads(result.stdout)
    assert len([r for r in records if r["type"] == "pcb_smtpad"]) == 172
    assert "pcb_board: 1" in result.stderr


def test_cli_footprint_to_file(tmp_path, chip_file, connections_file):
    out = tmp_path / "footprint.circuit.json"
    result = _run("footprint", chip_file, "-c", connections_file, "-o", str(out))
    assert result.returncode == 0
    assert result.stdout == ""
    records = json.loads(out.read_text())
    assert not [r for r in records if r["type"] == "pcb_board"]


def test_cli_layout_override(tmp_path, chip_file):
    layout = tmp_path / "layout.json"
    layout.write_text(json.dumps({"board_min_size": 100}))
    result = _run("fixture", chip_file, "--layout", str(layout))
    assert result.returncode == 0
    board = next(r for r in json.loads(result.stdout) if r["type"] == "pcb_board")
    assert board["width"] == 100.0


def test_cli_rejects_mixed_connection(tmp_path, chip_file):
    conns = tmp_path / "bad.json"
    conns.write_text(json.dumps([{"id": "c", "name": "BAD", "outerPinNames": ["C1", "X1"]}]))
    result = _run("fixture", chip_file, "-c", str(conns))
    assert result.returncode == 1
    assert "error: Connection c: X pins cannot be connected with other pins" in result.stderr
    assert result.stdout == ""


def test_cli_malformed_chip(tmp_path):
    path = tmp_path / "chip.json"
    path.write_text(json.dumps({"records": []}))
    result = _run("summary", str(path))
    assert result.returncode == 1
    assert "error:" in result.stderr


def test_cli_no_command():
    result = _run()
    assert result.returncode == 1
