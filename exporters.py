"""
Slide export: plain text, rich text, interchange JSON (.pro) and PowerPoint.

Every exporter is a pure function of (slides, reference) returning bytes;
write_export puts those bytes on disk. An optional sermon title frames the
verse slides with a title slide (title in capitals, reference underneath)
and a closing slide. The framing exists only in the export; the verse
slides and their ids are unchanged.
"""
from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Optional, Sequence

from slide_models import Slide

SEPARATOR = "-" * 50

PRO_FORMAT_NAME = "ccc-slides"
PRO_FORMAT_VERSION = 1

CLOSING_TEXT = "THANK YOU FOR JOINING US"
TITLE_FONT_SIZE = 66
CLOSING_FONT_SIZE = 52

MIME_TYPES = {
    "txt": "text/plain",
    "rtf": "application/rtf",
    "pro": "application/octet-stream",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}


class UnsupportedFormat(ValueError):
    pass


def export_txt(slides: Sequence[Slide], reference: str, title: Optional[str] = None) -> bytes:
    if title:
        out = [title, "=" * len(title), "", title.upper(), reference]
    else:
        out = [reference]
    for slide in slides:
        out.append(SEPARATOR)
        out.append(slide.content)
        out.append("")
    if title:
        out.extend([SEPARATOR, CLOSING_TEXT, ""])
    return ("\n".join(out) + "\n").encode("utf-8")


def escape_rtf(text: str) -> str:
    """Backslash, braces and newlines get RTF escapes; non-ASCII becomes \\uN?."""
    out = []
    for ch in (text or "").replace("\r", ""):
        if ch == "\\":
            out.append("\\\\")
        elif ch == "{":
            out.append("\\{")
        elif ch == "}":
            out.append("\\}")
        elif ch == "\n":
            out.append("\\par ")
        elif ord(ch) > 127:
            code = ord(ch)
            if code > 0xFFFF:
                # RTF \u takes 16-bit signed values; write the surrogate pair.
                code -= 0x10000
                for unit in (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)):
                    out.append(f"\\u{unit - 0x10000}?")
            else:
                out.append(f"\\u{code if code < 0x8000 else code - 0x10000}?")
        else:
            out.append(ch)
    return "".join(out)


def export_rtf(slides: Sequence[Slide], reference: str, title: Optional[str] = None) -> bytes:
    parts = ["{\\rtf1\\ansi\\deff0 {\\fonttbl {\\f0 Verdana;}}\\f0\\fs24 "]
    if title:
        parts.append(f"\\qc\\fs{TITLE_FONT_SIZE * 2}\\b {escape_rtf(title.upper())}\\b0\\par")
        parts.append(f"\\fs28 {escape_rtf(reference)}\\par")
    else:
        parts.append(f"\\qc\\fs36\\b {escape_rtf(reference)}\\b0\\par")
    for slide in slides:
        parts.append("\\page ")
        parts.append(f"\\qc\\fs28\\b {escape_rtf(slide.label)}\\b0\\par\\par ")
        parts.append(f"\\fs{slide.font_size * 2} {escape_rtf(slide.content)}\\par")
    if title:
        parts.append(f"\\page \\qc\\fs{CLOSING_FONT_SIZE * 2}\\b {CLOSING_TEXT}\\b0\\par")
    parts.append("}")
    return "".join(parts).encode("ascii")


def export_pro(slides: Sequence[Slide], reference: str, title: Optional[str] = None) -> bytes:
    """Opaque structured export mirroring the Slide fields."""
    doc = {
        "format": PRO_FORMAT_NAME,
        "version": PRO_FORMAT_VERSION,
        "reference": reference,
        "slides": [s.to_dict() for s in slides],
    }
    if title:
        doc["title"] = title
        doc["titleSlide"] = {"title": title.upper(), "subtitle": reference, "font_size": TITLE_FONT_SIZE}
        doc["closingSlide"] = {"title": CLOSING_TEXT, "font_size": CLOSING_FONT_SIZE}
    return json.dumps(doc, indent=2, ensure_ascii=False).encode("utf-8")


def export_pptx(slides: Sequence[Slide], reference: str, title: Optional[str] = None,
                template_path=None) -> bytes:
    # python-pptx is only needed for this format.
    from pptx_utils import (
        TOKEN_VERSE_REF,
        TOKEN_VERSE_TXT,
        add_plain_heading_slide,
        add_plain_scripture_slide,
        add_scripture_slide_from_template,
        find_template_slide_index,
        load_template,
        new_widescreen_presentation,
        remove_template_placeholder_slides,
    )

    if template_path:
        prs = load_template(template_path)
        tpl_idx = find_template_slide_index(prs, [TOKEN_VERSE_REF, TOKEN_VERSE_TXT])
    else:
        prs = new_widescreen_presentation()

    if title:
        add_plain_heading_slide(prs, title.upper(), TITLE_FONT_SIZE, subheading=reference)
    for slide in slides:
        if template_path:
            add_scripture_slide_from_template(prs, tpl_idx, slide.label, slide.content, slide.font_size)
        else:
            add_plain_scripture_slide(prs, slide.label, slide.content, slide.font_size)
    if title:
        add_plain_heading_slide(prs, CLOSING_TEXT, CLOSING_FONT_SIZE)

    # Only drop the token slides when something replaced them.
    if template_path and slides:
        remove_template_placeholder_slides(prs)

    buf = io.BytesIO()
    prs.save(buf)
    return buf.getvalue()


_EXPORTERS = {
    "txt": export_txt,
    "rtf": export_rtf,
    "pro": export_pro,
    "pptx": export_pptx,
}

SUPPORTED_FORMATS = tuple(_EXPORTERS)


def export_slides(slides: Sequence[Slide], fmt: str, reference: str, title: Optional[str] = None,
                  **options) -> bytes:
    key = (fmt or "").lower().strip().lstrip(".")
    exporter = _EXPORTERS.get(key)
    if exporter is None:
        raise UnsupportedFormat(f"Unsupported format: {fmt}")
    return exporter(slides, reference, title=title, **options)


def write_export(slides: Sequence[Slide], fmt: str, reference: str, output_path,
                 title: Optional[str] = None, **options) -> Path:
    data = export_slides(slides, fmt, reference, title=title, **options)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    return output_path
