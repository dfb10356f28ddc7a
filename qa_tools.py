from __future__ import annotations

from collections import Counter
from typing import Sequence

from config import DEFAULT_RULES, LayoutRules
from slide_models import (
    FONT_ABOVE_MAXIMUM,
    FONT_BELOW_MINIMUM,
    SINGLE_VERSE,
    ComplianceReport,
    Slide,
    VerseGroup,
)

RULE_MINIMUM_VERSES = "minimumVersesPerSlide"
RULE_FONT_RANGE = "fontSizeRange"
RULE_NO_THREE_PLUS_ONE = "noThreePlusOneSplits"
RULE_ORPHANS = "orphanPrevention"

RULE_ORDER = (RULE_MINIMUM_VERSES, RULE_FONT_RANGE, RULE_NO_THREE_PLUS_ONE, RULE_ORPHANS)

SUCCESS_BANNER = "✅ Presentation fully complies with CCC verse slide building rules!"


def _slides_phrase(slides) -> str:
    ids = ", ".join(str(s.id) for s in slides)
    return f"Slide {ids}" if len(slides) == 1 else f"Slides {ids}"


def audit_slides(slides: Sequence[Slide], groups: Sequence[VerseGroup],
                 rules: LayoutRules = DEFAULT_RULES) -> ComplianceReport:
    """Check the finished slides against the CCC rules.

    Allowance tags on a group excuse the matching rule for its slide; they
    are listed in the report instead of counting as violations.
    """
    if len(slides) != len(groups):
        raise ValueError(f"{len(slides)} slides but {len(groups)} verse groups; they must map 1:1")

    pairs = list(zip(slides, groups))
    multi_slide = len(slides) > 1

    too_few = [
        s for s, g in pairs
        if multi_slide and s.verse_count < rules.min_verses_per_slide and not g.has_allowance(SINGLE_VERSE)
    ]

    out_of_range = []
    for s, g in pairs:
        if s.font_size < rules.font_size_min and not g.has_allowance(FONT_BELOW_MINIMUM):
            out_of_range.append(s)
        elif s.font_size > rules.font_size_max and not g.has_allowance(FONT_ABOVE_MAXIMUM):
            out_of_range.append(s)

    three_plus_one = []
    for (cur, _), (nxt, nxt_group) in zip(pairs, pairs[1:]):
        if cur.verse_count == 3 and nxt.verse_count == 1 and not nxt_group.has_allowance(SINGLE_VERSE):
            three_plus_one.append((cur, nxt))

    orphans = [s for s, g in pairs[1:] if s.verse_count == 1 and not g.has_allowance(SINGLE_VERSE)]

    rules_satisfied = {
        RULE_MINIMUM_VERSES: not too_few,
        RULE_FONT_RANGE: not out_of_range,
        RULE_NO_THREE_PLUS_ONE: not three_plus_one,
        RULE_ORPHANS: not orphans,
    }

    violations = []
    if too_few:
        violations.append(f"{_slides_phrase(too_few)}: fewer than {rules.min_verses_per_slide} verses")
    if out_of_range:
        sizes = ", ".join(f"{s.id} ({s.font_size}pt)" for s in out_of_range)
        violations.append(
            f"{'Slide' if len(out_of_range) == 1 else 'Slides'} {sizes}: font size outside {rules.font_size_min}-{rules.font_size_max}pt"
        )
    if three_plus_one:
        pairs_txt = ", ".join(f"{a.id}-{b.id}" for a, b in three_plus_one)
        violations.append(f"Slides {pairs_txt}: 3+1 split detected")
    if orphans:
        violations.append(f"{_slides_phrase(orphans)}: orphaned single verse")

    score = sum(1 for ok in rules_satisfied.values() if ok) / len(rules_satisfied) * 100
    banner = SUCCESS_BANNER if score == 100 else f"⚠️ Presentation compliance: {score:.1f}%"

    allowances = [(s.id, tag) for s, g in pairs for tag in g.edge_case_allowances]
    distribution = Counter(s.font_size for s in slides)

    return ComplianceReport(
        is_compliant=score == 100,
        rules_satisfied=rules_satisfied,
        edge_case_allowances=allowances,
        recommendations=[banner] + violations,
        overall_score=score,
        total_slides=len(slides),
        font_size_distribution=dict(sorted(distribution.items())),
    )


def format_report_text(report: ComplianceReport, title: str | None = None) -> str:
    """Human-readable summary, one fact per line."""
    lines = []
    if title:
        lines.append(f"== {title} ==")
    lines.append(f"slides: {report.total_slides}")
    lines.append(f"compliance: {report.overall_score:.1f}%")
    for name in RULE_ORDER:
        if name in report.rules_satisfied:
            lines.append(f"  {name}: {'PASS' if report.rules_satisfied[name] else 'FAIL'}")
    if report.font_size_distribution:
        dist = ", ".join(f"{size}pt x{count}" for size, count in report.font_size_distribution.items())
        lines.append(f"font sizes: {dist}")
    if report.edge_case_allowances:
        lines.append("allowances:")
        for slide_id, tag in report.edge_case_allowances:
            lines.append(f"  slide {slide_id}: {tag}")
    lines.extend(report.recommendations)
    lines.append("")
    return "\n".join(lines)
