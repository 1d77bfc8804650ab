from __future__ import annotations

import asyncio
import html
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.middleware.cors import CORSMiddleware

from common.config import load_config, update_interval_s
from common.logging_setup import get_logger, setup_logging
from tracker.display import SLOTS, SLOT_ELEMENT_IDS, SLOT_LABELS
from tracker.fetcher import TelemetryFetcher
from tracker.loop import UpdateLoop, build_tracker
from tracker.scheduler import PeriodicTask


log = get_logger("tracker.server")


_PAGE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <meta http-equiv="refresh" content="{refresh_s}">
  <title>ISS Tracker</title>
  <style>
    body {{ font-family: sans-serif; margin: 1.5rem; }}
    #issMap {{ width: 100%; height: 520px; border: 0; }}
    .fields span {{ font-family: monospace; }}
  </style>
</head>
<body>
  <h1>International Space Station (ISS)</h1>
  <iframe id="issMap" src="/map" title="ISS map"></iframe>
  <ul class="fields">
{fields}
  </ul>
</body>
</html>
"""


def render_page(display: Dict[str, str], refresh_s: float) -> str:
    """HTML page with the map frame and one element per display slot."""
    fields = "\n".join(
        f'    <li>{SLOT_LABELS[s]}: <span id="{SLOT_ELEMENT_IDS[s]}">{html.escape(display[s])}</span></li>'
        for s in SLOTS
    )
    return _PAGE.format(refresh_s=max(1, int(round(refresh_s))), fields=fields)


def create_app(
    cfg: Optional[Dict[str, Any]] = None,
    *,
    fetcher: Optional[TelemetryFetcher] = None,
    autostart: bool = True,
) -> FastAPI:
    """
    Build the tracker web app.

    Params:
        cfg: config dict (defaults to common.config.load_config())
        fetcher: optional fetcher override (tests inject fakes here)
        autostart: start the periodic update loop on startup
    """
    P = cfg or load_config()
    interval_s = update_interval_s(P)
    tracker: UpdateLoop = build_tracker(P, fetcher=fetcher)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        handle: Optional[PeriodicTask] = None
        if autostart:
            handle = tracker.start(interval_s)
            log.info("ISS update loop started (every %.1fs)", interval_s)
        app.state.loop_handle = handle
        try:
            yield
        finally:
            if handle is not None:
                handle.cancel()
                await asyncio.to_thread(handle.join, interval_s)
            tracker.fetcher.close()

    app = FastAPI(title="ISS Tracker", version="1.0.0", lifespan=lifespan)
    app.state.tracker = tracker
    app.state.loop_handle = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=HTMLResponse)
    def index():
        return render_page(tracker.display.snapshot(), interval_s)

    @app.get("/map", response_class=HTMLResponse)
    def map_page():
        return tracker.map_view.to_deck().to_html(as_string=True, notebook_display=False)

    @app.get("/telemetry")
    def telemetry():
        view = tracker.map_view.snapshot()
        sample = tracker.last_sample
        return {
            "display": tracker.display.snapshot(),
            "view": view.to_dict(),
            "sample": sample.to_dict() if sample else None,
            "last_success": tracker.last_success,
        }

    @app.post("/refresh")
    def refresh():
        return {"updated": tracker.tick(), "display": tracker.display.snapshot()}

    @app.get("/health")
    def health():
        icon = tracker.icon_resolution
        handle = app.state.loop_handle
        return {
            "status": "ok",
            "loop": {
                "running": bool(handle and handle.running),
                "interval_s": interval_s,
                **tracker.stats(),
            },
            "icon": {
                "custom": bool(icon and icon.custom),
                "fallback_reason": icon.reason if icon else None,
            },
        }

    return app


# -------- local dev entrypoint --------
if __name__ == "__main__":
    P = load_config()
    setup_logging(P.get("logging", {}).get("level"))
    server_cfg = P.get("server", {})
    uvicorn.run(create_app(P), host=server_cfg.get("host", "0.0.0.0"), port=int(server_cfg.get("port", 8000)))
