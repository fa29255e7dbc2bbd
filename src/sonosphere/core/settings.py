"""
User-facing settings for the particle engine.

Settings are owned by the host and read once per tick; the engine never
writes them back except through ``ParticleEngine`` forwarding a scheduler
shape request.
"""

import json
import re
import sys
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

from sonosphere.shapes import ShapeKind

# Documented valid range per numeric setting.
SETTING_RANGES: Dict[str, Tuple[float, float]] = {
    "rotation_speed": (0.0, 2.0),
    "bass_boost": (1.0, 3.0),
    "bass_threshold": (0.0, 0.5),
    "morphing_intensity": (1.0, 10.0),
    "pulse_intensity": (0.1, 2.0),
    "color_theme": (0.0, 1.0),
    "bloom_strength": (0.0, 3.0),
    "particle_size": (0.5, 3.0),
    "sphere_radius": (2.0, 10.0),
    "audio_sensitivity": (0.5, 3.0),
    "particle_reset_time": (0.5, 5.0),
    "shape_transition_time": (0.5, 5.0),
    "auto_shape_interval": (3.0, 30.0),
    "shake_intensity": (0.0, 1.0),
}

_BOOL_SETTINGS = (
    "auto_shape_switch",
    "enable_shake",
    "enable_morphing",
    "use_high_quality_texture",
)

_BOOL_STRINGS = {"true": True, "false": False, "1": True, "0": False}


@dataclass(frozen=True)
class Settings:
    """Flat bag of named parameters with the documented defaults."""

    rotation_speed: float = 0.2
    bass_boost: float = 1.0
    bass_threshold: float = 0.5
    morphing_intensity: float = 3.0
    pulse_intensity: float = 0.5
    color_theme: float = 0.6
    bloom_strength: float = 1.5
    particle_size: float = 1.0
    sphere_radius: float = 3.5
    visual_shape: ShapeKind = ShapeKind.SPHERE
    audio_sensitivity: float = 0.7
    particle_reset_time: float = 2.0
    shape_transition_time: float = 1.5
    auto_shape_switch: bool = False
    auto_shape_interval: float = 10.0
    enable_shake: bool = False
    shake_intensity: float = 0.2
    enable_morphing: bool = True
    use_high_quality_texture: bool = True

    def __post_init__(self):
        object.__setattr__(self, "visual_shape", ShapeKind.parse(self.visual_shape))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], strict: bool = False) -> "Settings":
        """
        Build settings from a flat mapping.

        Keys may be snake_case (``rotation_speed``) or camelCase
        (``rotationSpeed``). Out-of-range numbers are clamped into range with
        a warning, or rejected when ``strict`` is set.

        Raises:
            ValueError: Unknown key, bad shape name, non-boolean flag, or
                (strict) out-of-range value.
        """
        return cls().updated(mapping, strict=strict)

    def updated(self, mapping: Mapping[str, Any], strict: bool = False) -> "Settings":
        """Return a copy with the values in ``mapping`` applied."""
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for key, value in mapping.items():
            name = _snake_case(key)
            if name not in known:
                raise ValueError(f"Unknown setting: {key!r}")
            changes[name] = _coerce(name, value, strict)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["visual_shape"] = self.visual_shape.value
        return data


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _BOOL_STRINGS:
        return _BOOL_STRINGS[value.strip().lower()]
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    raise ValueError(f"Setting {name} expects a boolean, got {value!r}")


def _coerce(name: str, value: Any, strict: bool) -> Any:
    if name == "visual_shape":
        return ShapeKind.parse(value)
    if name in _BOOL_SETTINGS:
        return _parse_bool(name, value)

    value = float(value)
    lo, hi = SETTING_RANGES[name]
    if lo <= value <= hi:
        return value
    if strict:
        raise ValueError(f"Setting {name}={value} outside range [{lo}, {hi}]")
    clamped = min(max(value, lo), hi)
    print(f"Warning: {name}={value} outside [{lo}, {hi}], using {clamped}", file=sys.stderr)
    return clamped


def load_settings(path: Union[str, Path], strict: bool = False) -> Settings:
    """Read a JSON object of settings from ``path``."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    return Settings.from_mapping(data, strict=strict)
