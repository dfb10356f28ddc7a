import math
from dataclasses import dataclass
from typing import Optional, Tuple

from config import DEFAULT_RULES, LayoutRules
from debug_tools import DebugRecorder
from slide_models import FONT_ABOVE_MAXIMUM, FONT_BELOW_MINIMUM


@dataclass(frozen=True)
class FontDecision:
    font_size: int
    font_adjustment: int
    estimated_lines: int
    allowances: Tuple[str, ...] = ()


def estimate_line_count(text: str, font_size: float, rules: LayoutRules = DEFAULT_RULES) -> int:
    """
    Rough rendered line count for text in the slide text box.

    Fixed character-width model: a character is font_size * 0.6 units wide,
    the box is 1180 units wide, and words wrap whole.
    """
    words = (text or "").split()
    if not words:
        return 1

    avg_char_w = font_size * rules.char_width_factor
    chars_per_line = math.floor(rules.text_box_width / avg_char_w)
    avg_word_len = len(text) / len(words)
    # A single word longer than the box still occupies a line of its own.
    words_per_line = max(1, math.floor(chars_per_line / (avg_word_len + 1)))

    return max(1, math.ceil(len(words) / words_per_line))


def size_group(text: str, rules: LayoutRules = DEFAULT_RULES,
               dbg: Optional[DebugRecorder] = None) -> FontDecision:
    """Start at the target size and step down (or up) by the estimated line count."""
    target = rules.font_size_target
    font_size = target
    char_count = len(text)
    lines = estimate_line_count(text, font_size, rules)

    if lines > 8:
        font_size = max(rules.font_size_min, target - 4)
        reason = "too many lines"
    elif lines > 6:
        font_size = max(rules.font_size_min, target - 2)
        reason = "many lines"
    elif lines < 4 and char_count < rules.short_content_chars:
        font_size = min(rules.font_size_max, target + 2)
        reason = "few lines"
    else:
        reason = "fits at target"

    allowances = []
    if char_count > rules.extremely_long_verse_threshold and font_size == rules.font_size_min:
        font_size = max(rules.font_size_floor_allowance, font_size - 2)
        if font_size < rules.font_size_min:
            allowances.append(FONT_BELOW_MINIMUM)
            reason = "extremely long content, below minimum"
    elif char_count < rules.very_short_verse_threshold and font_size == rules.font_size_max:
        font_size = min(rules.font_size_ceiling_allowance, font_size + 3)
        if font_size > rules.font_size_max:
            allowances.append(FONT_ABOVE_MAXIMUM)
            reason = "very short content, above maximum"

    final_lines = estimate_line_count(text, font_size, rules)
    if dbg is not None:
        dbg.log(f"  [FONT] {char_count} chars ~{lines} lines at {target}pt -> {font_size}pt ({reason})")
        dbg.record_decision("font", chars=char_count, lines=lines, font_size=font_size, reason=reason)

    return FontDecision(
        font_size=font_size,
        font_adjustment=font_size - target,
        estimated_lines=final_lines,
        allowances=tuple(allowances),
    )
