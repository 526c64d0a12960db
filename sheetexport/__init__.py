from .config import ServiceConfig, load_config
from .dispatcher import RenderDispatcher
from .document import Document, build_document
from .errors import ExportError, InvalidInputError, RenderError, WorkerCrashError
from .layout import ColumnSpec, resolve_layout
from .render_worker import render_xlsx

__all__ = [
    "ColumnSpec",
    "Document",
    "ExportError",
    "InvalidInputError",
    "RenderDispatcher",
    "RenderError",
    "ServiceConfig",
    "WorkerCrashError",
    "build_document",
    "load_config",
    "render_xlsx",
    "resolve_layout",
]
