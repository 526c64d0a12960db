"""
Root shim entrypoint: forwards execution to the export server.

Users should run: python server.py
"""


from __future__ import annotations

import runpy
import sys

if __name__ == "__main__":
    # Render workers are spawned processes that re-import this file; only the
    # real entrypoint may start the server.
    sys.argv[0] = "sheetexport.server"
    runpy.run_module("sheetexport.server", run_name="__main__", alter_sys=True)
