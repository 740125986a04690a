from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path

from interconnect_fixture.errors import ChipDataError
from interconnect_fixture.layout import DEFAULT_LAYOUT, ChipLayout
from interconnect_fixture.models import ChipModel, DeclaredNet, Pad, Pin, Trace

logger = logging.getLogger(__name__)


def load_chip_file(path: str | Path, layout: ChipLayout = DEFAULT_LAYOUT) -> ChipModel:
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ChipDataError(f"{path}: invalid JSON: {e}") from e
    return load_chip(data, layout=layout)


def load_chip(source, layout: ChipLayout = DEFAULT_LAYOUT, normalize_pads: bool = True) -> ChipModel:
    """Split a flat circuit record list into pins, nets, traces and pads.

    ``source`` is either the record list itself or an object holding it
    under ``objects``. Records of other types are ignored.
    """
    objects = _extract_objects(source)

    pins = [_parse_pin(r) for r in _by_type(objects, "source_port")]
    nets = [_parse_net(r) for r in _by_type(objects, "source_net")]
    traces = [_parse_trace(r) for r in _by_type(objects, "source_trace")]
    pads = [_parse_pad(r) for r in _by_type(objects, "pcb_smtpad")]
    if normalize_pads:
        pads = [normalize_pad_size(pad, layout) for pad in pads]

    logger.debug(
        "Loaded chip: %d pins, %d nets, %d traces, %d pads",
        len(pins), len(nets), len(traces), len(pads),
    )
    return ChipModel(pins=pins, nets=nets, traces=traces, pads=pads)


def normalize_pad_size(pad: Pad, layout: ChipLayout = DEFAULT_LAYOUT) -> Pad:
    """Replace the legacy chip pad size with the footprint's nominal size.

    Only exact matches are touched, so applying this twice is harmless.
    """
    width = layout.nominal_pad_size if pad.width == layout.legacy_pad_size else pad.width
    height = layout.nominal_pad_size if pad.height == layout.legacy_pad_size else pad.height
    if width == pad.width and height == pad.height:
        return pad
    return replace(pad, width=width, height=height)


def _extract_objects(source) -> list[dict]:
    if isinstance(source, list):
        objects = source
    elif isinstance(source, dict) and isinstance(source.get("objects"), list):
        objects = source["objects"]
    else:
        raise ChipDataError("Chip data must be a record list or an object with an 'objects' list")
    for i, record in enumerate(objects):
        if not isinstance(record, dict):
            raise ChipDataError(f"Record {i} is not an object: {record!r}")
    return objects


def _by_type(objects: list[dict], record_type: str) -> list[dict]:
    return [o for o in objects if o.get("type") == record_type]


def _require(record: dict, key: str):
    try:
        return record[key]
    except KeyError:
        record_id = next((v for k, v in record.items() if k.endswith("_id")), "?")
        raise ChipDataError(f"{record.get('type')} {record_id} is missing {key!r}") from None


def _hint_list(record: dict, hints) -> list[str]:
    if not isinstance(hints, list):
        raise ChipDataError(f"{record.get('type')} port_hints must be a list, got {hints!r}")
    return list(hints)


def _parse_pin(record: dict) -> Pin:
    hints = _hint_list(record, _require(record, "port_hints"))
    if not hints:
        raise ChipDataError(f"source_port {record.get('source_port_id')} has no port_hints")
    return Pin(
        source_port_id=_require(record, "source_port_id"),
        name=record.get("name", ""),
        pin_number=int(_require(record, "pin_number")),
        port_hints=hints,
        connectivity_key=_require(record, "subcircuit_connectivity_map_key"),
        source_component_id=record.get("source_component_id", ""),
        subcircuit_id=record.get("subcircuit_id", ""),
    )


def _parse_net(record: dict) -> DeclaredNet:
    return DeclaredNet(
        source_net_id=_require(record, "source_net_id"),
        name=record.get("name", ""),
        connectivity_key=_require(record, "subcircuit_connectivity_map_key"),
    )


def _parse_trace(record: dict) -> Trace:
    return Trace(
        source_trace_id=_require(record, "source_trace_id"),
        connected_source_port_ids=list(record.get("connected_source_port_ids", [])),
        connected_source_net_ids=list(record.get("connected_source_net_ids", [])),
        connectivity_key=record.get("subcircuit_connectivity_map_key", ""),
        display_name=record.get("display_name"),
    )


def _parse_pad(record: dict) -> Pad:
    return Pad(
        pcb_smtpad_id=_require(record, "pcb_smtpad_id"),
        pcb_port_id=record.get("pcb_port_id", ""),
        layer=record.get("layer", "top"),
        shape=record.get("shape", "rect"),
        width=float(_require(record, "width")),
        height=float(_require(record, "height")),
        x=float(_require(record, "x")),
        y=float(_require(record, "y")),
        port_hints=_hint_list(record, record.get("port_hints", [])),
        pcb_component_id=record.get("pcb_component_id", ""),
        subcircuit_id=record.get("subcircuit_id", ""),
    )
