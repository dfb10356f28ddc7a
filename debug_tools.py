from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

_TRUE_WORDS = {"1", "true", "yes", "y", "on"}

# env var suffix -> DebugSettings attribute
_ENV_TOGGLES = {
    "JSON": "write_json_report",
    "PRINT": "print_console",
    "LOG": "write_text_log",
}


def _truthy(v: str | None) -> bool:
    return v is not None and v.strip().lower() in _TRUE_WORDS


@dataclass
class DebugSettings:
    enabled: bool = False
    # <stem>_debug.json with every chunk and font decision per reference
    write_json_report: bool = True
    print_console: bool = True
    # <stem>_debug.log with the console lines
    write_text_log: bool = True

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None, prefix: str = "CCC_DEBUG") -> "DebugSettings":
        """
        CCC_DEBUG=1 turns recording on. CCC_DEBUG_JSON, CCC_DEBUG_PRINT and
        CCC_DEBUG_LOG switch the individual outputs; unset means keep the default.
        """
        env = os.environ if environ is None else environ
        s = DebugSettings(enabled=_truthy(env.get(prefix)))
        for suffix, attr in _ENV_TOGGLES.items():
            raw = env.get(f"{prefix}_{suffix}")
            if raw is not None:
                setattr(s, attr, _truthy(raw))
        return s


@dataclass
class DebugRecorder:
    """
    Collects what the layout pipeline decided, one run per reference.

    Every method is a no-op while the settings are disabled, so callers can
    pass a recorder around unconditionally.
    """
    settings: DebugSettings
    output_path: Optional[Path] = None
    started_ts: float = field(default_factory=time.time)
    lines: List[str] = field(default_factory=list)
    report: Dict[str, Any] = field(default_factory=lambda: {"version": 1, "runs": []})

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def log(self, msg: str) -> None:
        if not self.enabled:
            return
        line = f"[{time.strftime('%Y-%m-%d %H:%M:%S')}] {msg}"
        self.lines.append(line)
        if self.settings.print_console:
            print(line)

    def start_run(self, run_kind: str, reference: str, output_path: str | None = None) -> None:
        if not self.enabled:
            return
        if output_path:
            self.output_path = Path(output_path)
        self.report["runs"].append({
            "kind": run_kind,
            "reference": reference,
            "started_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "decisions": [],
            "slides": [],
        })
        self.log(f"==== {run_kind}: {reference} ====")
        if output_path:
            self.log(f"Output: {output_path}")

    def _current_run(self) -> Optional[Dict[str, Any]]:
        if not self.enabled or not self.report["runs"]:
            return None
        return self.report["runs"][-1]

    def record_decision(self, stage: str, **details: Any) -> None:
        """Keep a structured copy of a chunking or font decision for the JSON report."""
        run = self._current_run()
        if run is not None:
            run["decisions"].append({"stage": stage, **details})

    def add_slide_record(self, slide_rec: Dict[str, Any]) -> None:
        run = self._current_run()
        if run is not None:
            run["slides"].append(slide_rec)

    def finish_run(self, compliance_score: float) -> None:
        run = self._current_run()
        if run is not None:
            run["compliance_score"] = compliance_score

    def flush(self) -> None:
        """Write the log and JSON report next to output_path; nothing happens without one."""
        if not self.enabled or self.output_path is None:
            return
        out_dir = self.output_path.parent
        out_dir.mkdir(parents=True, exist_ok=True)
        stem = self.output_path.stem

        if self.settings.write_text_log:
            (out_dir / f"{stem}_debug.log").write_text("\n".join(self.lines) + "\n", encoding="utf-8")

        if self.settings.write_json_report:
            self.report["elapsed_seconds"] = round(time.time() - self.started_ts, 3)
            (out_dir / f"{stem}_debug.json").write_text(json.dumps(self.report, indent=2), encoding="utf-8")


def null_recorder() -> DebugRecorder:
    """A disabled recorder, for callers that did not ask for debugging."""
    return DebugRecorder(DebugSettings(enabled=False))
