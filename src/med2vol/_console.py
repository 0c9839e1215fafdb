"""Rich consoles shared by the CLI's series table, load spinner and volume summary.

The tables use box-drawing characters, which a legacy Windows code page
cannot encode, so stdout and stderr are switched to UTF-8 when the stream
allows it.
"""

from __future__ import annotations

import sys

from rich.console import Console

for _stream in (sys.stdout, sys.stderr):
    try:
        _stream.reconfigure(encoding="utf-8", errors="replace")
    except (AttributeError, OSError):
        pass

console = Console()
err_console = Console(stderr=True)
