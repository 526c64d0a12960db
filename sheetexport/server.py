# -*- coding: utf-8 -*-
"""
Export server entrypoint.

Run:
- python server.py              (root shim)
- python -m sheetexport.server
- python -m sheetexport.server --smoke   (render one document in a worker, no HTTP)
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import List, Optional, Tuple

from aiohttp import web

from . import http_api
from .config import ServiceConfig, load_config
from .dispatcher import RenderDispatcher
from .errors import ExportError
from .layout import resolve_layout

DISPATCHER_KEY = web.AppKey("dispatcher", RenderDispatcher)


def build_app(config: ServiceConfig, *, dispatcher: Optional[RenderDispatcher] = None) -> web.Application:
    if dispatcher is None:
        dispatcher = RenderDispatcher.from_config(config)

    app = web.Application(client_max_size=config.max_body_bytes)
    app[DISPATCHER_KEY] = dispatcher
    http_api.register_routes(app, dispatcher=dispatcher, config=config)

    async def _close_dispatcher(app: web.Application) -> None:
        await app[DISPATCHER_KEY].close()

    app.on_cleanup.append(_close_dispatcher)
    return app


async def serve(config: ServiceConfig) -> None:
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers; Ctrl+C still raises KeyboardInterrupt.
            pass

    app = build_app(config)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, config.host, config.port)
    await site.start()
    print(f"[BOOT] Server running at http://{config.host}:{config.port}", flush=True)

    try:
        await shutdown.wait()
    finally:
        print("[BOOT] shutting down", flush=True)
        await runner.cleanup()


async def _smoke_render(config: ServiceConfig) -> Tuple[bool, str]:
    rows = [
        {"name": "Ada", "amount": 3},
        {"name": "Grace", "amount": 4.5},
    ]
    config_cols = [
        {"key": "name", "label": "Name"},
        {"key": "amount", "label": "Amount", "summable": True},
    ]
    dispatcher = RenderDispatcher.from_config(config)
    try:
        layout = resolve_layout(rows, config_cols)
        payload = await dispatcher.render(rows, layout)
    except ExportError as e:
        return False, f"{type(e).__name__}: {e}"
    finally:
        await dispatcher.close()

    # .xlsx is a zip container.
    if not payload.startswith(b"PK"):
        return False, "worker reply is not an xlsx payload"
    return True, f"{len(payload)} bytes"


def run_smoke_test(config: ServiceConfig) -> int:
    ok, note = asyncio.run(_smoke_render(config))
    if not ok:
        print(f"[SMOKE] render via worker FAILED: {note}", flush=True)
        return 1
    print(f"[SMOKE] render via worker OK ({note})", flush=True)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    config = load_config()

    if args and args[0].strip().lower() in ("--smoke", "smoke"):
        return run_smoke_test(config)

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
