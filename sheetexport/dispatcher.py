# -*- coding: utf-8 -*-
"""
Render dispatcher: one fresh worker process per render.

Design:
- The event loop never builds or serializes a workbook; each call spawns a
  process running render_worker.run_render_job and waits for its single reply
  on a one-way pipe (the wait itself runs in a thread via asyncio.to_thread).
- A worker that dies without replying, or overruns the timeout, is a
  WorkerCrashError. An explicit ("error", msg) reply is a RenderError.
- Live workers are bounded by an asyncio.Semaphore; waiting callers are
  admitted in arrival order.
"""

from __future__ import annotations

import asyncio
import multiprocessing
from multiprocessing.process import BaseProcess
from typing import Any, Callable, Mapping, Sequence, Set, Tuple

from .config import ServiceConfig
from .errors import RenderError, WorkerCrashError
from .layout import ColumnSpec
from .render_worker import REPLY_ERROR, REPLY_OK, run_render_job

_JOIN_GRACE_S = 5.0


def _stop_process(proc: BaseProcess) -> None:
    if not proc.is_alive():
        proc.join(0)
        return
    proc.terminate()
    proc.join(_JOIN_GRACE_S)
    if proc.is_alive():
        proc.kill()
        proc.join()


def _collect_reply(proc: BaseProcess, conn, timeout_s: float) -> Tuple[str, Any]:
    """Blocking: wait for the worker's reply, then reap the process."""
    try:
        if not conn.poll(timeout_s):
            _stop_process(proc)
            raise WorkerCrashError(
                f"render timed out after {timeout_s:g}s",
                exit_code=proc.exitcode,
                timed_out=True,
            )
        try:
            reply = conn.recv()
        except EOFError:
            reply = None
    finally:
        conn.close()

    proc.join(_JOIN_GRACE_S)
    if proc.is_alive():
        _stop_process(proc)

    if reply is None:
        raise WorkerCrashError(
            f"render worker exited with code {proc.exitcode} without a reply",
            exit_code=proc.exitcode,
        )
    if not (isinstance(reply, tuple) and len(reply) == 2):
        raise RenderError("render worker sent a malformed reply")
    return reply


class RenderDispatcher:
    def __init__(
        self,
        *,
        timeout_s: float = 60.0,
        max_concurrent: int = 1,
        start_method: str = "spawn",
        sheet_title: str = "Data",
        target: Callable[..., None] = run_render_job,
    ) -> None:
        self._ctx = multiprocessing.get_context(start_method)
        self._timeout_s = timeout_s
        self._sheet_title = sheet_title
        self._target = target
        self._slots = asyncio.Semaphore(max(1, max_concurrent))
        self._live: Set[BaseProcess] = set()
        self._closed = False

    @classmethod
    def from_config(cls, config: ServiceConfig, **kwargs: Any) -> "RenderDispatcher":
        return cls(
            timeout_s=config.render_timeout_s,
            max_concurrent=config.max_concurrent_renders,
            start_method=config.start_method,
            sheet_title=config.sheet_title,
            **kwargs,
        )

    @property
    def live_workers(self) -> int:
        return len(self._live)

    async def render(self, rows: Sequence[Mapping[str, Any]], layout: Sequence[ColumnSpec]) -> bytes:
        """Render rows into .xlsx bytes on a fresh worker process."""
        if self._closed:
            raise RenderError("dispatcher is closed")
        async with self._slots:
            # close() may have run while this caller waited for a slot.
            if self._closed:
                raise RenderError("dispatcher is closed")
            return await self._render_once(rows, layout)

    async def _render_once(self, rows: Sequence[Mapping[str, Any]], layout: Sequence[ColumnSpec]) -> bytes:
        recv_conn, send_conn = self._ctx.Pipe(duplex=False)
        proc = self._ctx.Process(
            target=self._target,
            args=(send_conn, list(rows), tuple(layout), self._sheet_title),
            daemon=True,
        )
        try:
            proc.start()
        except Exception as e:
            recv_conn.close()
            send_conn.close()
            raise WorkerCrashError(f"could not start render worker: {e!r}") from e

        # Only the child holds the send end now, so its death reads as EOF here.
        send_conn.close()
        self._live.add(proc)
        try:
            kind, payload = await asyncio.to_thread(_collect_reply, proc, recv_conn, self._timeout_s)
        except asyncio.CancelledError:
            await asyncio.to_thread(_stop_process, proc)
            raise
        except WorkerCrashError as e:
            print(
                f"[RENDER] worker pid={proc.pid} crashed exit_code={e.exit_code} timed_out={e.timed_out}",
                flush=True,
            )
            raise
        finally:
            self._live.discard(proc)

        if kind == REPLY_OK and isinstance(payload, (bytes, bytearray)):
            return bytes(payload)
        if kind == REPLY_ERROR:
            print(f"[RENDER] worker pid={proc.pid} reported error: {payload}", flush=True)
            raise RenderError(str(payload))
        raise RenderError(f"render worker sent an unexpected reply kind {kind!r}")

    async def close(self) -> None:
        self._closed = True
        live = list(self._live)
        for proc in live:
            await asyncio.to_thread(_stop_process, proc)
        if live:
            print(f"[RENDER] stopped {len(live)} live worker(s) on shutdown", flush=True)
