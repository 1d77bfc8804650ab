"""
Headless ISS tracker: poll the telemetry endpoint and log every update.

Examples:
  # Poll every 5 s until Ctrl-C
  python -m tracker.service

  # Poll every 2 s for one minute, rewriting the map page after each tick
  python -m tracker.service --interval-ms 2000 --duration 60 --out-html runtime/iss_map.html
"""

from __future__ import annotations

import argparse
import time
from pathlib import Path
from typing import Optional

from common.config import load_config, update_interval_s
from common.logging_setup import get_logger, setup_logging
from tracker.loop import UpdateLoop, build_tracker
from tracker.scheduler import PeriodicTask


log = get_logger("tracker.service")


def _write_map_html(tracker: UpdateLoop, out_file: Path) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    tracker.map_view.to_deck().to_html(filename=str(out_file), open_browser=False, notebook_display=False)


def make_tick(tracker: UpdateLoop, out_html: Optional[Path] = None):
    """Wrap `tracker.tick` with per-tick logging and optional HTML output."""
    def _tick() -> Optional[bool]:
        ok = tracker.tick()
        if ok:
            log.info("ISS update", extra={"extra": tracker.display.snapshot()})
            if out_html is not None:
                _write_map_html(tracker, out_html)
        return ok
    return _tick


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser(description="ISS Tracker: headless poller")
    ap.add_argument("--config", default=None, help="YAML config (default: $ISS_TRACKER_CONFIG or config/params.yaml)")
    ap.add_argument("--interval-ms", type=int, default=None, help="Override update interval (ms)")
    ap.add_argument("--duration", type=float, default=None, help="Stop after N seconds")
    ap.add_argument("--out-html", default=None, help="Rewrite the rendered map HTML here after each update")
    ap.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (default: config or LOG_LEVEL)")
    args = ap.parse_args(argv)

    overrides = {}
    if args.interval_ms is not None:
        overrides["telemetry"] = {"update_interval_ms": args.interval_ms}
    P = load_config(args.config, overrides=overrides)
    setup_logging(args.log_level or P.get("logging", {}).get("level"))

    interval_s = update_interval_s(P)
    tracker = build_tracker(P)
    out_html = Path(args.out_html) if args.out_html else None

    handle = PeriodicTask(make_tick(tracker, out_html), interval_s, name="iss-update-loop").start()
    deadline = None if args.duration is None else time.monotonic() + float(args.duration)
    try:
        while handle.running:
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(0.2)
    except KeyboardInterrupt:
        pass
    finally:
        handle.cancel()
        handle.join(timeout=interval_s)
        tracker.fetcher.close()

    log.info("ISS tracker finished", extra={"extra": tracker.stats()})


if __name__ == "__main__":
    main()
