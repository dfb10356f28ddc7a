"""
Tests for font sizing (font_sizer.py)

Run: python -m pytest tests/test_font_sizer.py -q
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import LayoutRules
from debug_tools import DebugRecorder, DebugSettings
from font_sizer import estimate_line_count, size_group
from slide_models import FONT_ABOVE_MAXIMUM, FONT_BELOW_MINIMUM


def words(n: int) -> str:
    return " ".join(["word"] * n)


class TestEstimateLineCount:
    def test_empty_text_is_one_line(self):
        assert estimate_line_count("", 46) == 1
        assert estimate_line_count("   ", 46) == 1

    def test_wraps_by_average_word_length(self):
        # 42 chars per line at 46pt, 7 words of ~5 chars per line
        assert estimate_line_count(words(60), 46) == 9
        assert estimate_line_count(words(7), 46) == 1
        assert estimate_line_count(words(8), 46) == 2

    def test_overlong_words_take_a_line_each(self):
        text = " ".join(["x" * 60] * 3)
        assert estimate_line_count(text, 46) == 3

    def test_smaller_font_fits_more_per_line(self):
        text = words(200)
        assert estimate_line_count(text, 39) < estimate_line_count(text, 49)


class TestSizeGroup:
    def test_nine_lines_steps_down_four(self):
        decision = size_group(words(60))
        assert decision.font_size == 42
        assert decision.font_adjustment == -4
        assert decision.estimated_lines == 9
        assert decision.allowances == ()

    def test_seven_or_eight_lines_steps_down_two(self):
        decision = size_group(words(50))
        assert decision.font_size == 44
        assert decision.font_adjustment == -2

    def test_normal_content_stays_at_target(self):
        decision = size_group(words(30))
        assert decision.font_size == 46
        assert decision.font_adjustment == 0

    def test_short_content_steps_up(self):
        decision = size_group(words(10))
        assert decision.font_size == 48
        assert decision.font_adjustment == 2

    def test_few_lines_but_many_chars_stays(self):
        decision = size_group(" ".join(["x" * 60] * 3))
        assert decision.font_size == 46

    def test_extremely_long_content_goes_below_minimum(self):
        rules = LayoutRules(font_size_target=41)
        decision = size_group(words(120), rules)
        assert decision.font_size == 37
        assert decision.font_adjustment == -4
        assert decision.allowances == (FONT_BELOW_MINIMUM,)

    def test_very_short_content_goes_above_maximum(self):
        rules = LayoutRules(font_size_target=47)
        decision = size_group("35 Jesus wept.", rules)
        assert decision.font_size == 52
        assert decision.font_adjustment == 5
        assert decision.allowances == (FONT_ABOVE_MAXIMUM,)

    def test_no_tag_when_size_stays_in_range(self):
        rules = LayoutRules(font_size_target=41, font_size_floor_allowance=39)
        decision = size_group(words(120), rules)
        assert decision.font_size == 39
        assert decision.allowances == ()

    def test_default_target_never_leaves_range(self):
        for n in (1, 5, 30, 60, 120, 400):
            decision = size_group(words(n))
            assert 39 <= decision.font_size <= 49
            assert decision.allowances == ()

    def test_logs_decision(self):
        dbg = DebugRecorder(DebugSettings(enabled=True, print_console=False))
        size_group(words(60), dbg=dbg)
        assert len(dbg.lines) == 1
        assert "[FONT]" in dbg.lines[0]
        assert "42pt" in dbg.lines[0]
