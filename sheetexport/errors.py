# -*- coding: utf-8 -*-
"""
Error taxonomy for the export service.

Every error is terminal for its request. The HTTP layer maps:
- InvalidInputError -> 400
- RenderError       -> 500
- WorkerCrashError  -> 500 (logged with the worker exit code)
"""

from __future__ import annotations

from typing import Optional


class ExportError(Exception):
    """Base class for everything the export pipeline raises on purpose."""


class InvalidInputError(ExportError):
    """Request data or column config is malformed or empty."""


class RenderError(ExportError):
    """Document construction or serialization failed."""


class WorkerCrashError(ExportError):
    """The isolated render worker terminated without delivering a reply."""

    def __init__(self, message: str, *, exit_code: Optional[int] = None, timed_out: bool = False) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.timed_out = timed_out
