from __future__ import annotations

from typing import Any, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn


class FetchProgress:
    """
    Transient spinner showing problems scanned and kept while pages are fetched.
    Disabled instances are no-ops so callers never branch on it.
    """

    def __init__(self, *, enabled: bool, console: Optional[Console] = None) -> None:
        self._enabled = bool(enabled)
        self._console = console or (Console() if self._enabled else None)
        self._progress = None
        self._task: Optional[int] = None
        self._scanned = 0
        self._kept = 0
        if self._enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                TextColumn("scanned={task.fields[scanned]} kept={task.fields[kept]}"),
                TimeElapsedColumn(),
                console=self._console,
                transient=True,
            )

    def __enter__(self) -> FetchProgress:
        if self._enabled and self._progress is not None:
            self._progress.start()
            self._task = self._progress.add_task("Fetching Cloud Guard problems", total=None, scanned=0, kept=0)
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        if self._enabled and self._progress is not None:
            self._progress.stop()
            self._task = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def scanned(self) -> int:
        return self._scanned

    @property
    def kept(self) -> int:
        return self._kept

    def advance_fetch(self, *, count: int = 1) -> None:
        self._scanned += count
        self._refresh()

    def advance_kept(self, *, count: int = 1) -> None:
        self._kept += count
        self._refresh()

    def _refresh(self) -> None:
        if not self._enabled or self._progress is None or self._task is None:
            return
        self._progress.update(self._task, scanned=self._scanned, kept=self._kept)
