"""Progress reporting for ingestion runs. Purely observational."""

from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class Phase(str, Enum):
    """Stage a repository task has reached."""

    OPENING = "opening"
    ANALYZING = "analyzing"
    STORING = "storing"


class ProgressReporter(Protocol):
    def start(self, total: int) -> None: ...

    def phase(self, path: Path, phase: Phase) -> None: ...

    def advance(self) -> None: ...

    def finish(self) -> None: ...


class NullProgressReporter:
    """Reporter that ignores every event."""

    def start(self, total: int) -> None:
        pass

    def phase(self, path: Path, phase: Phase) -> None:
        pass

    def advance(self) -> None:
        pass

    def finish(self) -> None:
        pass


class RichProgressReporter:
    """Single progress bar showing the latest phase event and completion count."""

    def __init__(self, console: Optional[Console] = None):
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._task: Optional[TaskID] = None

    def start(self, total: int) -> None:
        self.progress.start()
        self._task = self.progress.add_task("Scanning repositories", total=total)

    def phase(self, path: Path, phase: Phase) -> None:
        if self._task is not None:
            self.progress.update(self._task, description=f"{path.name}: {phase.value}")

    def advance(self) -> None:
        if self._task is not None:
            self.progress.advance(self._task)

    def finish(self) -> None:
        if self._task is not None:
            self.progress.update(self._task, description="Done")
        self.progress.stop()
