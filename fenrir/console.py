"""Coloured status lines for operator-facing output.

Every major provisioning step prints a status line before and after it runs
so an operator can see which phase failed. Lines carry a coloured square and
a bracketed message:

    🟦[starting minikube]
    🟩[minikube started successfully]

"""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import typing as typ

from rich.console import Console
from rich.progress import Progress, TextColumn
from rich.text import Text

SYM_YELLOW_BOX = "🟨"
SYM_GREEN_BOX = "🟩"
SYM_BLUE_BOX = "🟦"
SYM_RED_BOX = "🟥"

ProgressReporter = cabc.Callable[[int], None]


class StatusConsole:
    """Render ok/warn/err/info status lines and download progress."""

    def __init__(self, console: Console | None = None) -> None:
        """Wrap ``console`` or a default rich console on stdout."""
        self.console = console or Console(highlight=False)

    def _line(self, symbol: str, style: str, message: str) -> None:
        self.console.print(Text.assemble(symbol, (f"[{message}]", style)))

    def ok(self, message: str) -> None:
        """Print a green success line."""
        self._line(SYM_GREEN_BOX, "green", message)

    def warn(self, message: str) -> None:
        """Print a yellow warning line."""
        self._line(SYM_YELLOW_BOX, "yellow", message)

    def err(self, message: str) -> None:
        """Print a red failure line."""
        self._line(SYM_RED_BOX, "red", message)

    def info(self, message: str) -> None:
        """Print a blue progress line."""
        self._line(SYM_BLUE_BOX, "blue", message)

    def echo(self, payload: bytes) -> None:
        """Write raw process output without markup interpretation."""
        text = payload.decode("utf-8", errors="replace").rstrip("\n")
        if text:
            self.console.print(Text(text))

    def ask(self, question: str) -> str:
        """Ask a question on stdin and return the raw answer.

        End of input is returned as the empty answer.
        """
        self.console.print(
            Text.assemble(SYM_BLUE_BOX, (f"[{question}]", "blue")), end=""
        )
        try:
            return self.console.input(": ")
        except EOFError:
            self.console.print()
            return ""

    @contextlib.contextmanager
    def download_progress(self, name: str) -> typ.Iterator[ProgressReporter]:
        """Display a running byte count while ``name`` downloads.

        Yields a callable that takes the cumulative number of bytes received.
        """
        columns = (
            TextColumn(SYM_BLUE_BOX),
            TextColumn("\\[Downloaded: {task.completed:.0f} bytes]", style="blue"),
        )
        # Redraws happen on each report; no background refresh thread.
        progress = Progress(*columns, console=self.console, auto_refresh=False)
        with progress:
            task_id = progress.add_task(name, total=None)

            def report(total: int) -> None:
                progress.update(task_id, completed=total, refresh=True)

            yield report
