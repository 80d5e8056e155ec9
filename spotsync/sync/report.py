"""
Failure aggregation and the end-of-run report
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from ..spotify.models import Track


class FailureList:
    """Tracks that could not be synchronized, in failure order"""

    def __init__(self):
        self._failures: List[Tuple[Track, str]] = []

    def add(self, track: Track, reason: str) -> None:
        self._failures.append((track, reason))

    def drain(self) -> List[Tuple[Track, str]]:
        """Return every failure and empty the list"""
        failures, self._failures = self._failures, []
        return failures

    def __len__(self) -> int:
        return len(self._failures)

    def __iter__(self) -> Iterator[Tuple[Track, str]]:
        return iter(list(self._failures))


@dataclass
class SyncReport:
    """
    Outcome of a synchronization run

    Attributes:
        total: Tracks in the working set
        fetched: Tracks downloaded from a provider
        flushed: Tracks finalized by the pipeline
        skipped: Tracks that needed nothing
        renamed: Local files moved to their canonical name
        failed: Failed tracks with the reason
        simulated: Whether the run was a simulation
    """
    total: int = 0
    fetched: int = 0
    flushed: int = 0
    skipped: int = 0
    renamed: int = 0
    failed: List[Tuple[Track, str]] = field(default_factory=list)
    simulated: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failed

    def summary_lines(self) -> List[str]:
        lines = [
            f"Tracks: {self.total}",
            f"Downloaded: {self.fetched}",
            f"Processed: {self.flushed}",
            f"Renamed: {self.renamed}",
            f"Up to date: {self.skipped}",
            f"Failed: {len(self.failed)}",
        ]
        if self.simulated:
            lines.insert(0, "Simulation, nothing was written")
        for track, reason in self.failed:
            lines.append(f"  - {track}: {reason}")
        return lines
