"""
CCC verse chunking.

Verses are cut into slide-sized groups left to right with a fixed greedy
table (maximize verses per slide, the last slide holds the same number of
verses or fewer). No group is revisited once emitted.

    remaining   take    result
    1           1       orphan (tagged single_verse only if very long)
    2..4        all     one slide
    5           3       3+2
    6           3       3+3
    7           4       4+3
    8           4       4+4
    >= 9        4/3/2   largest group within max_content_per_slide

A chosen 3 that would leave exactly 1 verse is corrected before emitting:
the 3+1 split stands only when that last verse is very long, otherwise the
group widens to 4 if it fits, else drops to 2 (2+2).
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from config import DEFAULT_RULES, LayoutRules
from debug_tools import DebugRecorder
from font_sizer import size_group
from slide_models import (
    ALLOWANCE_ORDER,
    EXTREMELY_LONG_CONTENT,
    SINGLE_VERSE,
    Verse,
    VerseGroup,
)

VERSE_SEPARATOR = "\n\n"

# remaining verse count -> group size, for the short tails of a passage
_TAIL_TABLE = {2: 2, 3: 3, 4: 4, 5: 3, 6: 3, 7: 4, 8: 4}


class EmptyVerseSequence(ValueError):
    """Raised when there are no verses to lay out."""


def _chars(verses: Sequence[Verse]) -> int:
    return sum(len(v.text) for v in verses)


def _largest_fitting(verses: Sequence[Verse], start: int, sizes, rules: LayoutRules,
                     dbg: Optional[DebugRecorder] = None) -> int:
    """First size in `sizes` whose verses fit in max_content_per_slide; the last size otherwise."""
    for size in sizes[:-1]:
        chars = _chars(verses[start:start + size])
        if chars <= rules.max_content_per_slide:
            return size
        if dbg is not None:
            dbg.log(f"  {size} verses too much content ({chars} chars)")
    return sizes[-1]


def choose_chunk_size(verses: Sequence[Verse], start: int, rules: LayoutRules = DEFAULT_RULES,
                      dbg: Optional[DebugRecorder] = None) -> int:
    """Group size for the verses starting at `start`, before the 3+1 correction."""
    remaining = len(verses) - start

    if remaining == 1:
        if dbg is not None and len(verses[start].text) <= rules.very_long_verse_threshold:
            dbg.log("  WARNING: single short verse remaining")
        return 1

    if remaining in _TAIL_TABLE:
        return _TAIL_TABLE[remaining]

    return _largest_fitting(verses, start, (4, 3, 2), rules, dbg)


def _correct_three_plus_one(verses: Sequence[Verse], start: int, size: int, rules: LayoutRules,
                            dbg: Optional[DebugRecorder] = None) -> int:
    remaining = len(verses) - start
    if size != 3 or remaining - size != 1:
        return size

    last = verses[-1]
    if len(last.text) > rules.very_long_verse_threshold:
        if dbg is not None:
            dbg.log(f"  Allowing 3+1 split - last verse is very long ({len(last.text)} chars)")
        return size

    chars4 = _chars(verses[start:start + 4])
    if chars4 <= rules.max_content_per_slide:
        if dbg is not None:
            dbg.log(f"  Taking 4 verses to avoid 3+1 split ({chars4} chars)")
        return 4

    if dbg is not None:
        dbg.log("  Preventing 3+1 split - redistributing as 2+2")
    return 2


def join_verses(verses: Sequence[Verse]) -> str:
    return VERSE_SEPARATOR.join(v.formatted for v in verses)


def identify_edge_cases(verses: Sequence[Verse], font_allowances=(),
                        rules: LayoutRules = DEFAULT_RULES) -> tuple:
    tags = set(font_allowances)
    if len(verses) == 1 and len(verses[0].text) > rules.very_long_verse_threshold:
        tags.add(SINGLE_VERSE)
    if _chars(verses) > rules.extremely_long_verse_threshold:
        tags.add(EXTREMELY_LONG_CONTENT)
    return tuple(t for t in ALLOWANCE_ORDER if t in tags)


def make_group(verses: Sequence[Verse], rules: LayoutRules = DEFAULT_RULES,
               dbg: Optional[DebugRecorder] = None) -> VerseGroup:
    text = join_verses(verses)
    font = size_group(text, rules, dbg)
    return VerseGroup(
        verses=tuple(verses),
        text=text,
        font_size=font.font_size,
        font_adjustment=font.font_adjustment,
        estimated_lines=font.estimated_lines,
        edge_case_allowances=identify_edge_cases(verses, font.allowances, rules),
    )


def chunk_verses(verses: Sequence[Verse], rules: LayoutRules | None = None,
                 dbg: Optional[DebugRecorder] = None) -> List[VerseGroup]:
    """Partition verses into slide groups. Deterministic; the input is not modified."""
    rules = rules or DEFAULT_RULES
    verses = list(verses)
    if not verses:
        raise EmptyVerseSequence("No verses to lay out on slides.")

    if dbg is not None:
        dbg.log(f"Applying CCC chunking to {len(verses)} verses...")

    groups: List[VerseGroup] = []
    i = 0
    while i < len(verses):
        size = choose_chunk_size(verses, i, rules, dbg)
        size = _correct_three_plus_one(verses, i, size, rules, dbg)

        group = make_group(verses[i:i + size], rules, dbg)
        groups.append(group)

        if dbg is not None:
            dbg.log(
                f"Chunk {len(groups)}: {size} verses ({group.start_verse}-{group.end_verse}), "
                f"{group.font_size}pt, {len(group.text)} chars"
                + (f", allowances={list(group.edge_case_allowances)}" if group.edge_case_allowances else "")
            )
            dbg.record_decision(
                "chunk",
                remaining=len(verses) - i,
                size=size,
                verses=[group.start_verse, group.end_verse],
                chars=group.verse_chars,
                allowances=list(group.edge_case_allowances),
            )
        i += size

    return groups
