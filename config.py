from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

CONFIG_FILE = Path(os.getenv("CCC_SLIDES_CONFIG") or (Path.home() / ".ccc_slides_config.json"))

# Section names used by the web settings form (camelCase) -> dataclass field names.
_CAMEL_ALIASES = {
    "fontSizeTarget": "font_size_target",
    "fontSizeMin": "font_size_min",
    "fontSizeMax": "font_size_max",
    "minVersesPerSlide": "min_verses_per_slide",
    "maxContentPerSlide": "max_content_per_slide",
    "veryLongVerseThreshold": "very_long_verse_threshold",
    "extremelyLongVerseThreshold": "extremely_long_verse_threshold",
    "veryShortVerseThreshold": "very_short_verse_threshold",
}


def _coerce_rule_value(key: str, value, kind):
    """Numbers from JSON or the settings form; numeric strings like "44" are accepted."""
    if isinstance(value, bool):
        raise ValueError(f"Layout rule {key} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Layout rule {key} must be a number, got {value!r}") from None
    if kind is int:
        if not number.is_integer():
            raise ValueError(f"Layout rule {key} must be a whole number, got {value!r}")
        return int(number)
    return number


@dataclass(frozen=True)
class LayoutRules:
    """CCC slide layout rules. Every field can be overridden from the config file."""

    font_size_target: int = 46
    font_size_min: int = 39
    font_size_max: int = 49
    min_verses_per_slide: int = 2
    max_content_per_slide: int = 800
    very_long_verse_threshold: int = 300
    extremely_long_verse_threshold: int = 500
    very_short_verse_threshold: int = 30

    # Hard limits when an edge-case allowance lets the size leave [min, max].
    font_size_floor_allowance: int = 37
    font_size_ceiling_allowance: int = 52

    # Line estimate model (ProPresenter 1280x720 canvas, 1180 wide text box).
    text_box_width: int = 1180
    char_width_factor: float = 0.6
    short_content_chars: int = 150

    def __post_init__(self):
        if not (self.font_size_min <= self.font_size_target <= self.font_size_max):
            raise ValueError(
                f"font_size_target {self.font_size_target} outside "
                f"[{self.font_size_min}, {self.font_size_max}]"
            )
        if self.font_size_floor_allowance > self.font_size_min:
            raise ValueError("font_size_floor_allowance must not exceed font_size_min")
        if self.font_size_ceiling_allowance < self.font_size_max:
            raise ValueError("font_size_ceiling_allowance must not be below font_size_max")
        if self.min_verses_per_slide < 1:
            raise ValueError("min_verses_per_slide must be >= 1")
        if self.text_box_width <= 0 or self.char_width_factor <= 0:
            raise ValueError("text_box_width and char_width_factor must be positive")

    @classmethod
    def from_dict(cls, data: dict | None) -> "LayoutRules":
        return cls().merged(data)

    def merged(self, data: dict | None) -> "LayoutRules":
        """Copy with the given fields overridden (snake_case or camelCase names)."""
        if not data:
            return self
        if not isinstance(data, dict):
            raise ValueError(f"Layout rules must be an object of name -> number, got {type(data).__name__}")
        known = {f.name for f in fields(self)}
        kwargs = {}
        for key, value in data.items():
            name = _CAMEL_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown layout rule: {key}")
            kwargs[name] = _coerce_rule_value(key, value, type(getattr(self, name)))
        return replace(self, **kwargs)

    def replace(self, **changes) -> "LayoutRules":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_RULES = LayoutRules()


def _load_config():
    if not CONFIG_FILE.exists():
        return {}
    with open(CONFIG_FILE, "r", encoding="utf-8") as f:
        return json.load(f)


def _save_config(data):
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def load_layout_rules() -> LayoutRules:
    return LayoutRules.from_dict(_load_config().get("layout_rules"))


def save_layout_rules(rules: LayoutRules) -> None:
    data = _load_config()
    data["layout_rules"] = rules.to_dict()
    _save_config(data)


def load_esv_api_key() -> str | None:
    key = _load_config().get("esv_api_key") or os.getenv("ESV_API_KEY")
    return key.strip() if key else None


def save_esv_api_key(api_key: str) -> None:
    data = _load_config()
    data["esv_api_key"] = api_key.strip()
    _save_config(data)


def load_bible_json_path():
    data = _load_config()
    return data.get("bible_json_path", "")


def save_bible_json_path(path):
    data = _load_config()
    data["bible_json_path"] = str(path)
    _save_config(data)


def auto_find_kjv_json():
    saved = load_bible_json_path()
    if saved and Path(saved).exists():
        return saved

    here = Path(__file__).resolve().parent
    candidate = here / "kjv.json"
    if candidate.exists():
        return str(candidate)

    return None
