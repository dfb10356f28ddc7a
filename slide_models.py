from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple


SINGLE_VERSE = "single_verse"
FONT_BELOW_MINIMUM = "font_below_minimum"
FONT_ABOVE_MAXIMUM = "font_above_maximum"
EXTREMELY_LONG_CONTENT = "extremely_long_content"

# Report order for allowance tags on a single slide.
ALLOWANCE_ORDER = (SINGLE_VERSE, FONT_BELOW_MINIMUM, FONT_ABOVE_MAXIMUM, EXTREMELY_LONG_CONTENT)


@dataclass(frozen=True)
class Verse:
    number: int
    text: str

    def __post_init__(self):
        if int(self.number) < 1:
            raise ValueError(f"Verse number must be >= 1, got {self.number}")
        if not (self.text or "").strip():
            raise ValueError(f"Verse {self.number} has no text")

    @property
    def formatted(self) -> str:
        return f"{self.number} {self.text}"


@dataclass(frozen=True)
class ScriptureReference:
    book: str
    chapter: int
    start_verse: int
    end_verse: int
    raw: str

    @property
    def verse_count(self) -> int:
        return self.end_verse - self.start_verse + 1

    @property
    def canonical(self) -> str:
        """'Mark 2:1-12' style string rebuilt from the parsed parts."""
        if self.end_verse != self.start_verse:
            return f"{self.book} {self.chapter}:{self.start_verse}-{self.end_verse}"
        return f"{self.book} {self.chapter}:{self.start_verse}"


@dataclass(frozen=True)
class VerseGroup:
    """A run of consecutive verses destined for exactly one slide."""
    verses: Tuple[Verse, ...]
    text: str
    font_size: int
    font_adjustment: int
    estimated_lines: int
    edge_case_allowances: Tuple[str, ...] = ()

    @property
    def start_verse(self) -> int:
        return self.verses[0].number

    @property
    def end_verse(self) -> int:
        return self.verses[-1].number

    @property
    def verse_chars(self) -> int:
        return sum(len(v.text) for v in self.verses)

    def has_allowance(self, tag: str) -> bool:
        return tag in self.edge_case_allowances


@dataclass(frozen=True)
class Slide:
    id: int
    content: str
    label: str
    font_size: int
    verse_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ComplianceReport:
    is_compliant: bool
    rules_satisfied: Dict[str, bool]
    edge_case_allowances: List[Tuple[int, str]]
    recommendations: List[str]
    overall_score: float
    total_slides: int = 0
    font_size_distribution: Dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isCompliant": self.is_compliant,
            "rulesSatisfied": dict(self.rules_satisfied),
            "edgeCaseAllowances": [
                {"slideId": slide_id, "tag": tag} for slide_id, tag in self.edge_case_allowances
            ],
            "recommendations": list(self.recommendations),
            "overallScore": self.overall_score,
            "totalSlides": self.total_slides,
            "fontSizeDistribution": {str(k): v for k, v in self.font_size_distribution.items()},
        }
