"""
Post-processing state machine

Every dispatched track walks the same path:

    PENDING -> STAGED -> NORMALIZED -> METADATA_FLUSHED -> FINALIZED

with FAILED reachable from any non-terminal state. Stages that the track's
options do not ask for are passed through and recorded as skipped. Only
staging and finalization can fail a track; loudness and tag problems are
logged and the track still lands on disk.

Work happens on the temporary file (".<Artist - Title>.part.mp3") which is
renamed onto the canonical filename at the very end, so an interrupted run
never leaves a half-written track under its real name.
"""

import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import MetadataError, NormalizationError
from ..spotify.models import Track
from ..utils.logger import get_logger
from .planner import SyncOptions


class Stage(Enum):
    PENDING = "pending"
    STAGED = "staged"
    NORMALIZED = "normalized"
    METADATA_FLUSHED = "metadata_flushed"
    FINALIZED = "finalized"
    FAILED = "failed"


TRANSITIONS = {
    Stage.PENDING: {Stage.STAGED, Stage.FAILED},
    Stage.STAGED: {Stage.NORMALIZED, Stage.FAILED},
    Stage.NORMALIZED: {Stage.METADATA_FLUSHED, Stage.FAILED},
    Stage.METADATA_FLUSHED: {Stage.FINALIZED, Stage.FAILED},
    Stage.FINALIZED: set(),
    Stage.FAILED: set(),
}


class InvalidTransition(RuntimeError):
    pass


@dataclass
class PipelineResult:
    track: Track
    state: Stage = Stage.PENDING
    skipped: List[Stage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == Stage.FINALIZED

    @property
    def reason(self) -> str:
        return self.errors[-1] if self.errors else ""

    def advance(self, stage: Stage) -> None:
        if stage not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.state.value} -> {stage.value}")
        self.state = stage


class PostProcessPipeline:
    """Stages, normalizes, tags and finalizes one track"""

    def __init__(self, folder: Union[str, Path], normalizer, tagger):
        """
        Args:
            folder: Music folder
            normalizer: Object with measure(path) and apply_gain(delta, path)
            tagger: Object with flush(track, path)
        """
        self.folder = Path(folder)
        self.normalizer = normalizer
        self.tagger = tagger
        self.logger = get_logger(__name__)

    def run(self, track: Track, options: SyncOptions) -> PipelineResult:
        """
        Process a track; per-track problems never raise

        Args:
            track: Track to finalize
            options: What the track needs

        Returns:
            PipelineResult in FINALIZED or FAILED state
        """
        result = PipelineResult(track)
        temporary = track.temporary_path(self.folder)
        destination = track.path(self.folder)

        if not self._stage(track, temporary, destination, result):
            return result

        self._normalize(temporary, options, result)
        self._flush_metadata(track, temporary, options, result)
        self._finalize(temporary, destination, result)
        return result

    def _fail(self, result: PipelineResult, message: str) -> None:
        result.errors.append(message)
        result.advance(Stage.FAILED)

    def _stage(self, track: Track, temporary: Path, destination: Path, result: PipelineResult) -> bool:
        if not temporary.is_file():
            source: Optional[Path] = None
            if destination.is_file():
                source = destination
            elif track.local_path is not None and Path(track.local_path).is_file():
                source = Path(track.local_path)

            if source is None:
                self._fail(result, "no downloaded or local file to process")
                self.logger.warning(f"Nothing to process for \"{track}\"")
                return False

            try:
                shutil.copy2(source, temporary)
            except OSError as e:
                self._fail(result, f"cannot stage {source.name}: {e}")
                self.logger.warning(f"Unable to stage \"{track}\": {e}")
                return False

        result.advance(Stage.STAGED)
        return True

    def _normalize(self, temporary: Path, options: SyncOptions, result: PipelineResult) -> None:
        if options.needs_normalization:
            try:
                level = self.normalizer.measure(temporary)
                if level < 0:
                    self.normalizer.apply_gain(abs(level), temporary)
            except NormalizationError as e:
                result.errors.append(str(e))
                self.logger.warning(f"Unable to normalize \"{result.track}\": {e}")
        else:
            result.skipped.append(Stage.NORMALIZED)
        result.advance(Stage.NORMALIZED)

    def _flush_metadata(self, track: Track, temporary: Path, options: SyncOptions, result: PipelineResult) -> None:
        if options.needs_metadata_flush:
            try:
                self.tagger.flush(track, temporary)
            except MetadataError as e:
                result.errors.append(str(e))
                self.logger.warning(f"Unable to flush metadata of \"{track}\": {e}")
        else:
            result.skipped.append(Stage.METADATA_FLUSHED)
        result.advance(Stage.METADATA_FLUSHED)

    def _finalize(self, temporary: Path, destination: Path, result: PipelineResult) -> None:
        try:
            if destination.exists():
                destination.unlink()
            os.replace(temporary, destination)
        except OSError as e:
            self._fail(result, f"cannot finalize: {e}")
            self.logger.warning(f"Unable to move \"{result.track}\" into place: {e}")
            return

        result.advance(Stage.FINALIZED)
        self.logger.debug(f"Finalized {destination.name}")
