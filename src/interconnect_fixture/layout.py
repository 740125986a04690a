from __future__ import annotations

from dataclasses import dataclass, fields, replace

from interconnect_fixture.errors import ConfigError


@dataclass(frozen=True)
class ChipLayout:
    """Physical constants for bridging and fixture layout, in millimeters."""

    adjacency_tolerance: float = 1.5
    identity_epsilon: float = 0.01

    legacy_pad_size: float = 0.3
    nominal_pad_size: float = 0.5

    interconnect_pad_size: float = 0.5
    test_pad_size: float = 4.0
    test_pad_pitch: float = 5.0
    trace_width: float = 0.15

    fixture_min_size: float = 30.0
    fixture_margin: float = 10.0
    board_min_size: float = 65.0
    board_margin: float = 7.5
    footprint_size: float = 55.0

    label_offset: float = 0.5
    label_font_size: float = 0.8
    group_label_spacing: float = 1.0
    outline_margin: float = 0.5
    outline_stroke_width: float = 0.1

    @classmethod
    def from_dict(cls, overrides: dict) -> ChipLayout:
        if not isinstance(overrides, dict):
            raise ConfigError("Layout overrides must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown layout keys: {', '.join(unknown)}")
        values = {}
        for key, value in overrides.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"Layout key {key} must be a number, got {value!r}")
            if value < 0:
                raise ConfigError(f"Layout key {key} must not be negative")
            values[key] = float(value)
        return replace(cls(), **values)


DEFAULT_LAYOUT = ChipLayout()
