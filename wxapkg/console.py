"""Console output shared by the command-line tools."""

from __future__ import annotations

import sys

from rich.console import Console

console = Console(highlight=False)


def fatal(error: BaseException | None) -> None:
    """Print ``error`` in red and exit with status 0; ``None`` is ignored."""
    if error is not None:
        console.print(str(error), style="red", markup=False)
        sys.exit(0)