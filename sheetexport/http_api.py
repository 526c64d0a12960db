# -*- coding: utf-8 -*-
"""
HTTP API for the export service.

Design:
- handle_download_request() is framework-free: parsed body in, DownloadResponse out.
- register_routes() wires it into aiohttp; the dispatcher and config are passed
  in explicitly (no module-level state).
- Internal error detail is logged, never returned to the client.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict

from aiohttp import web

from .config import ServiceConfig
from .dispatcher import RenderDispatcher
from .errors import InvalidInputError, RenderError, WorkerCrashError
from .layout import resolve_layout
from .sheet_sink import XLSX_CONTENT_TYPE

RENDER_FAILED_TEXT = "Failed to generate Excel file"


@dataclass
class DownloadResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def _text_response(status: int, text: str) -> DownloadResponse:
    return DownloadResponse(
        status=status,
        headers={"Content-Type": "text/plain; charset=utf-8"},
        body=text.encode("utf-8"),
    )


async def handle_download_request(
    payload: Any,
    *,
    dispatcher: RenderDispatcher,
    filename: str = "data.xlsx",
) -> DownloadResponse:
    if not isinstance(payload, dict):
        return _text_response(400, "Body must be a JSON object.")

    data = payload.get("data")
    try:
        layout = resolve_layout(data, payload.get("config"))
    except InvalidInputError as e:
        return _text_response(400, str(e))

    started = time.monotonic()
    try:
        xlsx_bytes = await dispatcher.render(data, layout)
    except WorkerCrashError as e:
        print(f"[HTTP] /download-excel worker crash exit_code={e.exit_code}: {e}", flush=True)
        return _text_response(500, RENDER_FAILED_TEXT)
    except RenderError as e:
        print(f"[HTTP] /download-excel render failed: {e}", flush=True)
        return _text_response(500, RENDER_FAILED_TEXT)

    print(
        f"[HTTP] /download-excel rows={len(data)} cols={len(layout)} "
        f"bytes={len(xlsx_bytes)} ms={int((time.monotonic() - started) * 1000)}",
        flush=True,
    )
    return DownloadResponse(
        status=200,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Type": XLSX_CONTENT_TYPE,
        },
        body=xlsx_bytes,
    )


def register_routes(app: web.Application, *, dispatcher: RenderDispatcher, config: ServiceConfig) -> None:
    started_at = time.time()

    def _finish(resp: web.StreamResponse) -> web.StreamResponse:
        resp.headers["Access-Control-Allow-Origin"] = config.cors_origin
        return resp

    async def handle_download_excel(request: web.Request) -> web.StreamResponse:
        try:
            payload = await request.json()
        except ValueError:
            return _finish(web.Response(status=400, text="Expected JSON body.", content_type="text/plain"))

        out = await handle_download_request(
            payload,
            dispatcher=dispatcher,
            filename=config.download_filename,
        )
        return _finish(web.Response(status=out.status, body=out.body, headers=out.headers))

    async def handle_download_preflight(request: web.Request) -> web.StreamResponse:
        resp = web.Response(status=204)
        resp.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
        resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return _finish(resp)

    async def handle_health(request: web.Request) -> web.StreamResponse:
        payload = {
            "ok": True,
            "host": config.host,
            "port": config.port,
            "uptime_s": max(0, int(time.time() - started_at)),
            "live_workers": dispatcher.live_workers,
        }
        return _finish(web.json_response(payload))

    # ---- Route registrations (single place) ----
    app.router.add_post("/download-excel", handle_download_excel)
    app.router.add_route("OPTIONS", "/download-excel", handle_download_preflight)
    app.router.add_get("/health", handle_health)
