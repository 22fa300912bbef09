"""ewlab CLI: validate a stored wave document.

Reads a document in collection or snapshot form, runs the rule engine on
every wave (or one, via --wave), prints a compact report and optionally
exports it as JSON / CSV.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from ewlab.config import DEFAULTS, EditorConfig, load_config
from ewlab.ew.core.errors import SchemaError
from ewlab.ew.core.serialize import loads_snapshot
from ewlab.logging import LogConfig, get_logger, setup_logging
from ewlab.reporting.report import build_reports, format_compact, report_frame

log = get_logger("ewlab.cli")


def _ensure_dir(p: str) -> None:
    Path(p).parent.mkdir(parents=True, exist_ok=True)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ewlab", description="Validate Elliott Wave annotations")
    p.add_argument("--input", required=True, help="wave document (JSON, collection or snapshot form)")
    p.add_argument("--wave", default="", help="only validate this wave id")
    p.add_argument("--all", action="store_true", help="print passing rules too")

    # exports
    p.add_argument("--export_report", default="")
    p.add_argument("--export_report_csv", default="")

    # logging/config
    p.add_argument("--config", default=os.environ.get("EWLAB_CONFIG", ""))
    p.add_argument("--log_level", default=os.environ.get("EWLAB_LOG_LEVEL", ""))
    p.add_argument("--json_logs", action="store_true")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(DEFAULTS, file_path=args.config or None)
    except (OSError, ValueError) as e:
        log.error("cannot load config %s: %s", args.config, e)
        return 2
    lc = LogConfig.from_dict(cfg)
    setup_logging(LogConfig(
        level=args.log_level or lc.level,
        json=bool(args.json_logs) or lc.json,
        to_file=lc.to_file,
        utc=lc.utc,
    ))
    editor_cfg = EditorConfig.from_dict(cfg)

    try:
        text = Path(args.input).read_text(encoding="utf-8")
    except OSError as e:
        log.error("cannot read %s: %s", args.input, e)
        return 2
    try:
        snap = loads_snapshot(text)
    except SchemaError as e:
        log.error("invalid document %s: %s", args.input, e)
        return 2

    reports = build_reports(snap.waves, editor_cfg.rules, wave_id=args.wave or None)
    if args.wave and not reports:
        log.warning("wave %s not found in %s", args.wave, args.input)

    out = format_compact(reports, failures_only=not args.all)
    if out:
        print(out)
    log.info("validated", extra={"waves": len(reports), "input": args.input})

    if args.export_report:
        _ensure_dir(args.export_report)
        with open(args.export_report, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in reports], f, ensure_ascii=False, indent=2)

    if args.export_report_csv:
        _ensure_dir(args.export_report_csv)
        report_frame(reports).to_csv(args.export_report_csv, index=False)

    return 0


if __name__ == "__main__":
    sys.exit(main())
