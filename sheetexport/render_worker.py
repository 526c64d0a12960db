# -*- coding: utf-8 -*-
"""
Render worker entrypoint (runs inside the isolated process).

Reply protocol over the pipe, exactly one message per job:
- ("ok", <xlsx bytes>)
- ("error", <message>)
No message at all means the process died; the dispatcher reports that as a crash.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from .document import build_document
from .errors import ExportError, RenderError
from .layout import ColumnSpec
from .sheet_sink import write_document

REPLY_OK = "ok"
REPLY_ERROR = "error"


def render_xlsx(rows: Sequence[Mapping[str, Any]], layout: Sequence[ColumnSpec], sheet_title: str = "Data") -> bytes:
    try:
        document = build_document(rows, layout, sheet_title=sheet_title)
        return write_document(document)
    except ExportError:
        raise
    except Exception as e:
        raise RenderError(f"{type(e).__name__}: {e}") from e


def run_render_job(conn, rows: Sequence[Mapping[str, Any]], layout: Sequence[ColumnSpec], sheet_title: str = "Data") -> None:
    try:
        payload = render_xlsx(rows, layout, sheet_title)
    except Exception as e:
        conn.send((REPLY_ERROR, str(e) or type(e).__name__))
    else:
        conn.send((REPLY_OK, payload))
    finally:
        conn.close()
