#!/usr/bin/env python3
"""
CCC scripture slides from the command line.

Usage (examples):
  python app.py "Mark 2:1-12"
  python app.py "Mark 2:1-12" "Romans 5:1-5" --format pptx --out out/sermon.pptx
  python app.py "John 3:16" --source kjv --kjv-json ~/kjv.json --format rtf --out out/john.rtf --strict

Exit codes: 0 ok, 2 bad input / source failure, 3 not compliant under --strict.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from config import LayoutRules, auto_find_kjv_json, load_esv_api_key, load_layout_rules
from debug_tools import DebugRecorder, DebugSettings
from exporters import SUPPORTED_FORMATS, UnsupportedFormat, write_export
from qa_tools import format_report_text
from verse_slide_builder import build_presentation
from verse_sources import VerseSourceError, select_verse_source


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Build CCC-compliant scripture slides.")
    ap.add_argument("references", nargs="+", help='Scripture references, e.g. "Mark 2:1-12"')
    ap.add_argument("--source", default="auto", choices=["auto", "placeholder", "esv", "kjv"],
                    help="Where verse text comes from (auto = ESV if a key is configured)")
    ap.add_argument("--esv-key", default=None, help="ESV API key (defaults to config / ESV_API_KEY)")
    ap.add_argument("--kjv-json", default=None, help="Path to kjv.json for --source kjv")
    ap.add_argument("--format", default="txt", choices=list(SUPPORTED_FORMATS), help="Export format")
    ap.add_argument("--out", default=None, help="Write the export here")
    ap.add_argument("--template", default=None, help="PPTX template with {{VERSE REF}} / {{VERSE TXT}}")
    ap.add_argument("--title", default=None, help="Sermon title; adds a title slide and a closing slide to the export")
    ap.add_argument("--rules", default=None, help='Layout rule overrides as JSON, e.g. \'{"fontSizeTarget": 44}\'')
    ap.add_argument("--report-json", default=None, help="Write the compliance reports as JSON here")
    ap.add_argument("--strict", action="store_true", help="Exit 3 unless every reference is fully compliant")
    return ap


def _rules_from_args(rules_json: str | None) -> LayoutRules:
    rules = load_layout_rules()
    if rules_json:
        rules = rules.merged(json.loads(rules_json))
    return rules


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    dbg = DebugRecorder(DebugSettings.from_env())
    try:
        rules = _rules_from_args(args.rules)
        source = select_verse_source(
            args.source,
            esv_api_key=args.esv_key or load_esv_api_key(),
            kjv_json_path=args.kjv_json or auto_find_kjv_json(),
        )
        if args.out:
            dbg.output_path = Path(args.out).expanduser()
        results = build_presentation(args.references, source, rules, dbg=dbg)
    except (VerseSourceError, ValueError) as e:
        # InvalidReferenceFormat, EmptyVerseSequence and bad --rules are ValueErrors.
        print(f"error: {e}", file=sys.stderr)
        return 2

    slides = [s for r in results for s in r.slides]
    for r in results:
        for slide in r.slides:
            print(f"[{slide.id}] {slide.label}: {slide.verse_count} verse(s), {slide.font_size}pt")
        print(format_report_text(r.report, title=r.reference.raw))

    if args.out:
        reference = "; ".join(r.reference.raw for r in results)
        options = {"template_path": args.template} if args.format == "pptx" and args.template else {}
        try:
            out = write_export(slides, args.format, reference, Path(args.out).expanduser(),
                               title=args.title, **options)
        except (UnsupportedFormat, RuntimeError, OSError) as e:
            # RuntimeError: template slide without the verse tokens.
            print(f"error: {e}", file=sys.stderr)
            return 2
        print("Wrote:", out)

    if args.report_json:
        report_path = Path(args.report_json).expanduser()
        report_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {r.reference.raw: r.report.to_dict() for r in results}
        report_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    dbg.flush()

    if args.strict and not all(r.report.is_compliant for r in results):
        print("STATUS: FAIL")
        return 3
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
