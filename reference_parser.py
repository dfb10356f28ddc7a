import re

from slide_models import ScriptureReference


class InvalidReferenceFormat(ValueError):
    """The text is not '<Book> <chapter>:<verse>' or '<Book> <chapter>:<start>-<end>'."""


# Book is anything before the last "<chapter>:<verse>[-<verse>]"; it may hold
# spaces and a leading numeral ("1 Corinthians", "Song of Solomon").
_REFERENCE_RE = re.compile(
    r"^\s*(?P<book>\S.*?)\s+(?P<chapter>\d{1,3})\s*:\s*(?P<start>\d{1,3})"
    r"(?:\s*[-–—]\s*(?P<end>\d{1,3}))?\s*$"
)


def parse_reference(raw: str) -> ScriptureReference:
    """
    Parse a typed scripture reference.

    The book name is trimmed but not validated; resolving it to a real book is
    the verse source's job. Raises InvalidReferenceFormat, never returns a
    partial reference.
    """
    if raw is None:
        raise InvalidReferenceFormat("Empty scripture reference")
    m = _REFERENCE_RE.match(raw)
    if not m:
        raise InvalidReferenceFormat(f"Invalid scripture reference format: {raw!r}")

    book = " ".join(m.group("book").split())
    chapter = int(m.group("chapter"))
    start_verse = int(m.group("start"))
    end_verse = int(m.group("end")) if m.group("end") else start_verse

    if chapter < 1 or start_verse < 1:
        raise InvalidReferenceFormat(f"Chapter and verse must start at 1: {raw!r}")
    if end_verse < start_verse:
        raise InvalidReferenceFormat(f"Verse range runs backwards: {raw!r}")

    return ScriptureReference(
        book=book,
        chapter=chapter,
        start_verse=start_verse,
        end_verse=end_verse,
        raw=raw.strip(),
    )


# --- references inside free text (sermon notes) ---

BOOK_NAMES = [
 "Genesis","Exodus","Leviticus","Numbers","Deuteronomy","Joshua","Judges","Ruth",
 "1 Samuel","2 Samuel","1 Kings","2 Kings","1 Chronicles","2 Chronicles",
 "Ezra","Nehemiah","Esther","Job","Psalms","Psalm","Proverbs","Ecclesiastes","Song of Solomon",
 "Isaiah","Jeremiah","Lamentations","Ezekiel","Daniel","Hosea","Joel","Amos","Obadiah",
 "Jonah","Micah","Nahum","Habakkuk","Zephaniah","Haggai","Zechariah","Malachi",
 "Matthew","Mark","Luke","John","Acts","Romans","1 Corinthians","2 Corinthians",
 "Galatians","Ephesians","Philippians","Colossians","1 Thessalonians","2 Thessalonians",
 "1 Timothy","2 Timothy","Titus","Philemon","Hebrews","James","1 Peter","2 Peter",
 "1 John","2 John","3 John","Jude","Revelation",
]

# Longest names first so "1 John" wins over "John".
_BOOK_RE = "(" + "|".join(re.escape(b) for b in sorted(BOOK_NAMES, key=len, reverse=True)) + ")"
_NOTES_REF_RE = re.compile(
    rf"\b{_BOOK_RE}\s+(\d{{1,3}})\s*:\s*(\d{{1,3}})(?:\s*[-–]\s*(\d{{1,3}}))?\b",
    re.IGNORECASE,
)

_ABBREVIATIONS = {
    r"\bGen\b\.?": "Genesis",
    r"\bExo?\b\.?": "Exodus",
    r"\bLev\b\.?": "Leviticus",
    r"\bDeut\b\.?": "Deuteronomy",
    r"\bSam\b\.?": "Samuel",
    r"\bKgs\b\.?": "Kings",
    r"\bChron\b\.?": "Chronicles",
    r"\bPsa?\b\.?": "Psalms",
    r"\bProv\b\.?": "Proverbs",
    r"\bIsa\b\.?": "Isaiah",
    r"\bJer\b\.?": "Jeremiah",
    r"\bMatt?\b\.?": "Matthew",
    r"\bMk\b\.?": "Mark",
    r"\bLk\b\.?": "Luke",
    r"\bJn\b\.?": "John",
    r"\bRom\b\.?": "Romans",
    r"\bCor\b\.?": "Corinthians",
    r"\bGal\b\.?": "Galatians",
    r"\bEph\b\.?": "Ephesians",
    r"\bPhil\b\.?": "Philippians",
    r"\bThess\b\.?": "Thessalonians",
    r"\bTim\b\.?": "Timothy",
    r"\bHeb\b\.?": "Hebrews",
    r"\bPet\b\.?": "Peter",
    r"\bRev\b\.?": "Revelation",
}

_NUMBERED_BOOKS = r"(Samuel|Kings|Chronicles|Corinthians|Thessalonians|Timothy|Peter|John)\b"

# Applied in order: "III" before "II" before "I".
_ROMAN_PREFIXES = [
    (r"\bIII\s+(?=John\b)", "3 "),
    (rf"\bII\s+(?={_NUMBERED_BOOKS})", "2 "),
    (rf"\bI\s+(?={_NUMBERED_BOOKS})", "1 "),
]


def _canonical_book_case(book: str) -> str:
    lowered = book.lower()
    for name in BOOK_NAMES:
        if name.lower() == lowered:
            return name
    return book


def extract_ordered_refs(doc_text: str) -> list[str]:
    """References found in free text, first-seen order, without duplicates."""
    text = doc_text or ""
    for pattern, replacement in _ABBREVIATIONS.items():
        text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
    for pattern, replacement in _ROMAN_PREFIXES:
        text = re.sub(pattern, replacement, text)

    ordered_refs = []
    seen = set()

    for m in _NOTES_REF_RE.finditer(text):
        book = _canonical_book_case(" ".join(m.group(1).split()))
        chapter, start, end = m.group(2), m.group(3), m.group(4)
        refstr = f"{book} {chapter}:{start}-{end}" if end else f"{book} {chapter}:{start}"

        key = refstr.lower()
        if key not in seen:
            seen.add(key)
            ordered_refs.append(refstr)

    return ordered_refs
