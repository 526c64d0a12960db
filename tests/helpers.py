"""Module-level render targets that misbehave on purpose (must be importable by spawned workers)."""

from __future__ import annotations

import os
import time


def crash_without_reply(conn, rows, layout, sheet_title) -> None:
    os._exit(3)


def reply_with_error(conn, rows, layout, sheet_title) -> None:
    conn.send(("error", "boom: cell exploded"))
    conn.close()


def hang_forever(conn, rows, layout, sheet_title) -> None:
    time.sleep(600)
