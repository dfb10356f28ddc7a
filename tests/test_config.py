"""
Tests for layout rules and the settings file (config.py)

Run: python -m pytest tests/test_config.py -q
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import config
from config import DEFAULT_RULES, LayoutRules


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "settings" / "ccc.json"
    monkeypatch.setattr(config, "CONFIG_FILE", path)
    monkeypatch.delenv("ESV_API_KEY", raising=False)
    return path


class TestLayoutRules:
    def test_defaults(self):
        assert DEFAULT_RULES.font_size_target == 46
        assert (DEFAULT_RULES.font_size_min, DEFAULT_RULES.font_size_max) == (39, 49)
        assert DEFAULT_RULES.min_verses_per_slide == 2
        assert DEFAULT_RULES.max_content_per_slide == 800
        assert DEFAULT_RULES.very_long_verse_threshold == 300
        assert DEFAULT_RULES.extremely_long_verse_threshold == 500
        assert DEFAULT_RULES.very_short_verse_threshold == 30

    def test_camel_case_overrides(self):
        rules = LayoutRules.from_dict({"fontSizeTarget": 44, "maxContentPerSlide": 600})
        assert rules.font_size_target == 44
        assert rules.max_content_per_slide == 600
        assert rules.font_size_min == 39

    def test_snake_case_overrides(self):
        assert DEFAULT_RULES.merged({"min_verses_per_slide": 3}).min_verses_per_slide == 3

    def test_empty_override_returns_same_rules(self):
        assert DEFAULT_RULES.merged(None) is DEFAULT_RULES
        assert DEFAULT_RULES.merged({}) is DEFAULT_RULES

    def test_numeric_strings_coerced(self):
        rules = LayoutRules.from_dict({"fontSizeTarget": "44", "char_width_factor": "0.55"})
        assert rules.font_size_target == 44
        assert isinstance(rules.font_size_target, int)
        assert rules.char_width_factor == 0.55

    def test_whole_float_accepted_for_int_rule(self):
        assert LayoutRules.from_dict({"maxContentPerSlide": 600.0}).max_content_per_slide == 600

    @pytest.mark.parametrize("value", ["big", None, True, [44], {"pt": 44}, 44.5])
    def test_non_numeric_value_rejected(self, value):
        with pytest.raises(ValueError, match="fontSizeTarget"):
            LayoutRules.from_dict({"fontSizeTarget": value})

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError):
            DEFAULT_RULES.merged([("fontSizeTarget", 44)])

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown layout rule"):
            LayoutRules.from_dict({"fontColour": "white"})

    @pytest.mark.parametrize("changes", [
        {"font_size_target": 50},
        {"font_size_min": 47},
        {"font_size_floor_allowance": 40},
        {"font_size_ceiling_allowance": 48},
        {"min_verses_per_slide": 0},
        {"char_width_factor": 0},
    ])
    def test_inconsistent_rules_rejected(self, changes):
        with pytest.raises(ValueError):
            LayoutRules(**changes)

    def test_round_trip_dict(self):
        rules = DEFAULT_RULES.replace(font_size_target=44)
        assert LayoutRules.from_dict(rules.to_dict()) == rules


class TestSettingsFile:
    def test_missing_file_gives_defaults(self, config_file):
        assert config.load_layout_rules() == DEFAULT_RULES
        assert config.load_esv_api_key() is None
        assert config.load_bible_json_path() == ""

    def test_layout_rules_saved_and_loaded(self, config_file):
        config.save_layout_rules(DEFAULT_RULES.replace(font_size_target=44))
        assert config_file.exists()
        assert config.load_layout_rules().font_size_target == 44

    def test_settings_share_one_file(self, config_file):
        config.save_esv_api_key("  abc123 ")
        config.save_bible_json_path(Path("/data/kjv.json"))
        data = json.loads(config_file.read_text(encoding="utf-8"))
        assert data == {"esv_api_key": "abc123", "bible_json_path": str(Path("/data/kjv.json"))}
        assert config.load_esv_api_key() == "abc123"

    def test_esv_key_from_environment(self, config_file, monkeypatch):
        monkeypatch.setenv("ESV_API_KEY", "from-env")
        assert config.load_esv_api_key() == "from-env"

    def test_saved_kjv_path_found(self, config_file, tmp_path):
        kjv = tmp_path / "kjv.json"
        kjv.write_text("[]", encoding="utf-8")
        config.save_bible_json_path(kjv)
        assert config.auto_find_kjv_json() == str(kjv)
