"""
Verse sources: where the ordered verse list for a reference comes from.

The caller picks one source before running the slide pipeline; the layout
core never knows which one produced its verses.
"""
from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter

from slide_models import ScriptureReference, Verse

ESV_API_URL = "https://api.esv.org/v3/passage/text/"

PLACEHOLDER_TEMPLATE = (
    "This is placeholder text for {book} {chapter}:{verse}. "
    "The actual scripture text will appear when you add your ESV API key."
)


class VerseSourceError(RuntimeError):
    pass


def clean_text(txt: str) -> str:
    if not txt:
        return ""
    txt = txt.replace("¶", "").replace("‹", "").replace("›", "")
    txt = txt.replace("<", "").replace(">", "")
    txt = re.sub(r"\s+", " ", txt)
    return txt.strip()


def normalize_book_name(book: str):
    b = re.sub(r"\s+", " ", book).strip().lower()
    aliases = {
        "ps": "psalms", "psa": "psalms", "psalm": "psalms",
        "song": "song of solomon", "song of songs": "song of solomon",
        "jn": "john", "jo": "john",
        "mt": "matthew", "mat": "matthew", "matt": "matthew",
        "mk": "mark", "mrk": "mark",
        "lk": "luke", "lu": "luke",
        "rom": "romans",
        "eph": "ephesians",
        "1 cor": "1 corinthians", "2 cor": "2 corinthians",
        "1 thess": "1 thessalonians", "2 thess": "2 thessalonians",
        "1 tim": "1 timothy", "2 tim": "2 timothy",
        "1 pet": "1 peter", "2 pet": "2 peter",
        "1 jn": "1 john", "2 jn": "2 john", "3 jn": "3 john",
        "rev": "revelation", "re": "revelation",
    }
    return aliases.get(b, b)


_BRACKETED_VERSE_RE = re.compile(r"\[(\d+)\]\s*([^\[]*)")


def parse_bracketed_verses(text: str) -> list[Verse]:
    """Split '[1] In the beginning ... [2] And the earth ...' into verses."""
    verses = []
    for m in _BRACKETED_VERSE_RE.finditer(text or ""):
        verse_text = clean_text(m.group(2))
        if verse_text:
            verses.append(Verse(int(m.group(1)), verse_text))
    return verses


class VerseSource:
    """Supplies the ordered verses of a parsed reference."""

    name = "abstract"

    def fetch(self, reference: ScriptureReference) -> List[Verse]:
        raise NotImplementedError


# --- deterministic placeholder text ---

SAMPLE_PASSAGES: Dict[Tuple[str, int], Dict[int, str]] = {
    ("mark", 2): {
        1: "And when he returned to Capernaum after some days, it was reported that he was at home.",
        2: "And many were gathered together, so that there was no more room, not even at the door. And he was preaching the word to them.",
        3: "And they came, bringing to him a paralytic carried by four men.",
        4: "And when they could not get near him because of the crowd, they removed the roof above him, and when they had made an opening, they let down the bed on which the paralytic lay.",
        5: "And when Jesus saw their faith, he said to the paralytic, \"Son, your sins are forgiven.\"",
        6: "Now some of the scribes were sitting there, questioning in their hearts,",
        7: "\"Why does this man speak like that? He is blaspheming! Who can forgive sins but God alone?\"",
        8: "And immediately Jesus, perceiving in his spirit that they thus questioned within themselves, said to them, \"Why do you question these things in your hearts?",
        9: "Which is easier, to say to the paralytic, 'Your sins are forgiven,' or to say, 'Rise, take up your bed and walk'?",
        10: "But that you may know that the Son of Man has authority on earth to forgive sins\"—he said to the paralytic—",
        11: "\"I say to you, rise, pick up your bed, and go home.\"",
        12: "And he rose and immediately picked up his bed and went out before them all, so that they were all amazed and glorified God, saying, \"We never saw anything like this!\"",
    },
    ("romans", 5): {
        1: "Therefore, since we have been justified by faith, we have peace with God through our Lord Jesus Christ.",
        2: "Through him we have also obtained access by faith into this grace in which we stand, and we rejoice in hope of the glory of God.",
        3: "Not only that, but we rejoice in our sufferings, knowing that suffering produces endurance,",
        4: "and endurance produces character, and character produces hope,",
        5: "and hope does not put us to shame, because God's love has been poured into our hearts through the Holy Spirit who has been given to us.",
    },
    ("john", 11): {
        35: "Jesus wept.",
        36: "So the Jews said, \"See how he loved him!\"",
    },
    ("john", 3): {
        16: "\"For God so loved the world, that he gave his only Son, that whoever believes in him should not perish but have eternal life.\"",
    },
    ("romans", 8): {
        28: "And we know that for those who love God all things work together for good, for those who are called according to his purpose.",
    },
    ("ephesians", 1): {
        3: "Blessed be the God and Father of our Lord Jesus Christ, who has blessed us in Christ with every spiritual blessing in the heavenly places,",
        4: "even as he chose us in him before the foundation of the world, that we should be holy and blameless before him. In love",
        5: "he predestined us for adoption to himself as sons through Jesus Christ, according to the purpose of his will,",
        6: "to the praise of his glorious grace, with which he has blessed us in the Beloved.",
    },
}


class PlaceholderTextSource(VerseSource):
    """Offline source: sample passages where known, generated text elsewhere."""

    name = "placeholder"

    def __init__(self, samples: Optional[Dict[Tuple[str, int], Dict[int, str]]] = None):
        self.samples = SAMPLE_PASSAGES if samples is None else samples

    def fetch(self, reference: ScriptureReference) -> List[Verse]:
        chapter_text = self.samples.get((normalize_book_name(reference.book), reference.chapter), {})
        verses = []
        for number in range(reference.start_verse, reference.end_verse + 1):
            text = chapter_text.get(number) or PLACEHOLDER_TEMPLATE.format(
                book=reference.book, chapter=reference.chapter, verse=number
            )
            verses.append(Verse(number, text))
        return verses


# --- ESV API ---

class LiveTextSource(VerseSource):
    """
    Fetch passage text from the ESV API.

    Verse numbers come back inline as '[n]' markers and are split with
    parse_bracketed_verses. Timeouts and connection retries belong here,
    not in the layout code.
    """

    name = "esv"

    def __init__(self, api_key: str, session: Optional[requests.Session] = None,
                 timeout: float = 30, retries: int = 2, url: str = ESV_API_URL):
        if not api_key:
            raise VerseSourceError("ESV API key is required for live scripture text.")
        self.api_key = api_key
        self.timeout = timeout
        self.url = url
        if session is None:
            session = requests.Session()
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    def _params(self, reference: ScriptureReference) -> dict:
        return {
            "q": reference.canonical,
            "include-headings": "false",
            "include-footnotes": "false",
            "include-verse-numbers": "true",
            "include-short-copyright": "false",
            "include-passage-references": "false",
        }

    def fetch(self, reference: ScriptureReference) -> List[Verse]:
        headers = {"Authorization": f"Token {self.api_key}", "Accept": "application/json"}
        try:
            r = self.session.get(self.url, headers=headers, params=self._params(reference), timeout=self.timeout)
        except requests.RequestException as e:
            raise VerseSourceError(f"ESV API request failed for {reference.canonical}: {e}") from e

        if r.status_code != 200:
            raise VerseSourceError(f"ESV API error {r.status_code} for {reference.canonical}")

        passages = (r.json() or {}).get("passages") or []
        if not passages or not passages[0].strip():
            raise VerseSourceError(f"ESV API returned no text for {reference.canonical}")

        verses = parse_bracketed_verses(passages[0])
        if not verses:
            # No verse markers (single verse responses sometimes omit them).
            text = clean_text(passages[0])
            verses = [Verse(reference.start_verse, text)] if text else []
        return [v for v in verses if reference.start_verse <= v.number <= reference.end_verse]


# --- local KJV JSON ---

def load_bible_json(json_path: str):
    if not os.path.exists(json_path):
        raise VerseSourceError(f"Bible JSON not found: {json_path}")

    try:
        with open(json_path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as e:
        raise VerseSourceError(f"Could not read Bible JSON {json_path}: {e}") from e

    entries = data if isinstance(data, list) else data.get("verses", [])
    bible = {}

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        book = str(entry.get("book_name", "")).strip()
        if not book:
            continue
        try:
            chapter = int(entry.get("chapter"))
            verse = int(entry.get("verse"))
        except (TypeError, ValueError):
            continue

        text = clean_text(str(entry.get("text", "")).strip())
        if not text:
            continue
        key = (normalize_book_name(book), chapter, verse)
        bible[key] = text

    return bible


class KjvJsonSource(VerseSource):
    """Offline KJV text from a kjv.json file (list of book_name/chapter/verse/text entries)."""

    name = "kjv"

    def __init__(self, json_path):
        self.json_path = Path(json_path)
        self._bible = None

    @property
    def bible(self):
        if self._bible is None:
            self._bible = load_bible_json(str(self.json_path))
        return self._bible

    def fetch(self, reference: ScriptureReference) -> List[Verse]:
        book = normalize_book_name(reference.book)
        verses = []
        for number in range(reference.start_verse, reference.end_verse + 1):
            text = self.bible.get((book, reference.chapter, number))
            if text:
                verses.append(Verse(number, text))
        return verses


def select_verse_source(kind: str = "auto", esv_api_key: str | None = None,
                        kjv_json_path: str | None = None) -> VerseSource:
    """
    Pick a verse source up front.

    'auto' means ESV when an API key is available, placeholder text otherwise.
    A failed ESV fetch is reported, never swapped for placeholder text.
    """
    kind = (kind or "auto").lower().strip()
    if kind == "auto":
        kind = "esv" if esv_api_key else "placeholder"

    if kind == "placeholder":
        return PlaceholderTextSource()
    if kind == "esv":
        return LiveTextSource(esv_api_key or "")
    if kind == "kjv":
        if not kjv_json_path:
            raise VerseSourceError("No kjv.json path configured.")
        return KjvJsonSource(kjv_json_path)
    raise VerseSourceError(f"Unknown verse source: {kind}")
