from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from config import DEFAULT_RULES, LayoutRules
from debug_tools import DebugRecorder, null_recorder
from qa_tools import audit_slides
from reference_parser import parse_reference
from slide_models import ComplianceReport, ScriptureReference, Slide, Verse, VerseGroup
from verse_chunker import chunk_verses
from verse_sources import VerseSource


@dataclass(frozen=True)
class SlideBuildResult:
    reference: ScriptureReference
    verses: List[Verse]
    groups: List[VerseGroup]
    slides: List[Slide]
    report: ComplianceReport


def slide_label(reference: ScriptureReference, index: int) -> str:
    return f"{reference.raw} ({index})"


def assemble_slides(groups: Sequence[VerseGroup], reference: ScriptureReference,
                    start_id: int = 1) -> List[Slide]:
    """One slide per group, same order. Slide ids start at start_id; label indexes start at 1."""
    slides = []
    for index, group in enumerate(groups, start=1):
        slides.append(
            Slide(
                id=start_id + index - 1,
                content=group.text,
                label=slide_label(reference, index),
                font_size=group.font_size,
                verse_count=len(group.verses),
            )
        )
    return slides


def build_slides_for_verses(reference: ScriptureReference, verses: Sequence[Verse],
                            rules: LayoutRules | None = None, start_id: int = 1,
                            dbg: Optional[DebugRecorder] = None) -> SlideBuildResult:
    """Layout core only: verses already in memory, no I/O."""
    rules = rules or DEFAULT_RULES
    dbg = dbg if dbg is not None else null_recorder()
    verses = list(verses)
    groups = chunk_verses(verses, rules, dbg)
    slides = assemble_slides(groups, reference, start_id=start_id)
    report = audit_slides(slides, groups, rules)

    for slide, group in zip(slides, groups):
        dbg.add_slide_record(
            {
                "type": "verse",
                "id": slide.id,
                "label": slide.label,
                "verses": [group.start_verse, group.end_verse],
                "font_size": group.font_size,
                "font_adjustment": group.font_adjustment,
                "estimated_lines": group.estimated_lines,
                "allowances": list(group.edge_case_allowances),
            }
        )
    dbg.log(f"[QA] {reference.raw}: compliance {report.overall_score:.1f}%")
    dbg.finish_run(report.overall_score)

    return SlideBuildResult(reference=reference, verses=verses, groups=groups, slides=slides, report=report)


def build_scripture_slides(raw: str, source: VerseSource, rules: LayoutRules | None = None,
                           start_id: int = 1, dbg: Optional[DebugRecorder] = None) -> SlideBuildResult:
    """Parse the reference, fetch its verses, then lay them out and audit them."""
    reference = parse_reference(raw)
    dbg = dbg if dbg is not None else null_recorder()
    dbg.start_run("verses", reference.raw)
    dbg.log(f"[SOURCE] {source.name}")
    verses = source.fetch(reference)
    return build_slides_for_verses(reference, verses, rules, start_id=start_id, dbg=dbg)


def build_presentation(raws: Sequence[str], source: VerseSource, rules: LayoutRules | None = None,
                       dbg: Optional[DebugRecorder] = None) -> List[SlideBuildResult]:
    """Several references in order. Slide ids keep counting across references."""
    results = []
    next_id = 1
    for raw in raws:
        result = build_scripture_slides(raw, source, rules, start_id=next_id, dbg=dbg)
        results.append(result)
        next_id += len(result.slides)
    return results
