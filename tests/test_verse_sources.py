"""
Tests for verse sources (verse_sources.py)

Run: python -m pytest tests/test_verse_sources.py -q
"""

import json
import sys
from pathlib import Path

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from reference_parser import parse_reference
from verse_sources import (
    KjvJsonSource,
    LiveTextSource,
    PlaceholderTextSource,
    VerseSourceError,
    clean_text,
    normalize_book_name,
    parse_bracketed_verses,
    select_verse_source,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class TestTextHelpers:
    def test_clean_text(self):
        assert clean_text("  In the\n beginning ¶ ") == "In the beginning"
        assert clean_text("") == ""

    def test_bracketed_verses(self):
        verses = parse_bracketed_verses("[1] In the beginning. [2] And the earth\n was without form.")
        assert [(v.number, v.text) for v in verses] == [
            (1, "In the beginning."),
            (2, "And the earth was without form."),
        ]

    def test_normalize_book_name(self):
        assert normalize_book_name("Psalm") == "psalms"
        assert normalize_book_name(" 1  Cor ") == "1 corinthians"
        assert normalize_book_name("Mark") == "mark"


class TestPlaceholderSource:
    def test_sample_text(self):
        verses = PlaceholderTextSource().fetch(parse_reference("John 11:35-36"))
        assert [v.number for v in verses] == [35, 36]
        assert verses[0].text == "Jesus wept."

    def test_generated_text_is_deterministic(self):
        ref = parse_reference("Jude 1:3-4")
        first = PlaceholderTextSource().fetch(ref)
        assert first == PlaceholderTextSource().fetch(ref)
        assert "Jude 1:3" in first[0].text

    def test_custom_samples(self):
        source = PlaceholderTextSource({("mark", 1): {1: "The beginning of the gospel."}})
        assert source.fetch(parse_reference("Mark 1:1"))[0].text == "The beginning of the gospel."


class TestLiveTextSource:
    def test_parses_verse_markers(self):
        payload = {"passages": ["[1] Therefore, since we have been justified [2] Through him  "]}
        session = FakeSession(FakeResponse(200, payload))
        source = LiveTextSource("secret", session=session)
        verses = source.fetch(parse_reference("Romans 5:1-2"))

        assert [(v.number, v.text) for v in verses] == [
            (1, "Therefore, since we have been justified"),
            (2, "Through him"),
        ]
        call = session.calls[0]
        assert call["headers"]["Authorization"] == "Token secret"
        assert call["params"]["q"] == "Romans 5:1-2"
        assert call["timeout"] == 30

    def test_drops_verses_outside_range(self):
        payload = {"passages": ["[15] a [16] For God so loved [17] c"]}
        source = LiveTextSource("k", session=FakeSession(FakeResponse(200, payload)))
        verses = source.fetch(parse_reference("John 3:16"))
        assert [v.number for v in verses] == [16]

    def test_single_verse_without_markers(self):
        payload = {"passages": ["Jesus wept.\n"]}
        source = LiveTextSource("k", session=FakeSession(FakeResponse(200, payload)))
        verses = source.fetch(parse_reference("John 11:35"))
        assert [(v.number, v.text) for v in verses] == [(35, "Jesus wept.")]

    def test_http_error(self):
        source = LiveTextSource("k", session=FakeSession(FakeResponse(401, {})))
        with pytest.raises(VerseSourceError, match="401"):
            source.fetch(parse_reference("John 3:16"))

    def test_empty_passages(self):
        source = LiveTextSource("k", session=FakeSession(FakeResponse(200, {"passages": []})))
        with pytest.raises(VerseSourceError):
            source.fetch(parse_reference("John 3:16"))

    def test_network_error_wrapped(self):
        session = FakeSession(error=requests.ConnectionError("offline"))
        source = LiveTextSource("k", session=session)
        with pytest.raises(VerseSourceError, match="offline"):
            source.fetch(parse_reference("John 3:16"))

    def test_key_required(self):
        with pytest.raises(VerseSourceError):
            LiveTextSource("")


class TestKjvJsonSource:
    def _write(self, tmp_path, data):
        path = tmp_path / "kjv.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_reads_list_format(self, tmp_path):
        path = self._write(tmp_path, [
            {"book_name": "Psalms", "chapter": 23, "verse": 1, "text": "The LORD [is] my shepherd; I shall not want."},
            {"book_name": "Psalms", "chapter": 23, "verse": 2, "text": "He maketh me to lie down in green pastures."},
            {"book_name": "Psalms", "chapter": "x", "verse": 3, "text": "skipped"},
        ])
        verses = KjvJsonSource(path).fetch(parse_reference("Psalm 23:1-3"))
        assert [v.number for v in verses] == [1, 2]
        assert verses[0].text.startswith("The LORD [is]")

    def test_reads_wrapped_format(self, tmp_path):
        path = self._write(tmp_path, {"verses": [
            {"book_name": "John", "chapter": 11, "verse": 35, "text": "Jesus wept."},
        ]})
        verses = KjvJsonSource(path).fetch(parse_reference("John 11:35"))
        assert verses[0].text == "Jesus wept."

    def test_missing_file(self, tmp_path):
        source = KjvJsonSource(tmp_path / "missing.json")
        with pytest.raises(VerseSourceError):
            source.fetch(parse_reference("John 11:35"))

    def test_bad_json(self, tmp_path):
        path = tmp_path / "kjv.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(VerseSourceError):
            KjvJsonSource(path).fetch(parse_reference("John 11:35"))


class TestSelectVerseSource:
    def test_auto_without_key_is_placeholder(self):
        assert isinstance(select_verse_source("auto"), PlaceholderTextSource)

    def test_auto_with_key_is_live(self):
        assert isinstance(select_verse_source("auto", esv_api_key="k"), LiveTextSource)

    def test_kjv_requires_path(self, tmp_path):
        with pytest.raises(VerseSourceError):
            select_verse_source("kjv")
        assert isinstance(select_verse_source("KJV", kjv_json_path=str(tmp_path / "kjv.json")), KjvJsonSource)

    def test_esv_without_key(self):
        with pytest.raises(VerseSourceError):
            select_verse_source("esv")

    def test_unknown(self):
        with pytest.raises(VerseSourceError):
            select_verse_source("nkjv")
