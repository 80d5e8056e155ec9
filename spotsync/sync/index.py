"""
Rename-aware index of the local music folder

The index maps remote track IDs to the local file holding each track. It lets
the synchronizer notice that a track already exists under a different name
(the user renamed it, or the remote title changed) and move it back to its
canonical filename instead of downloading it again.

IDs are read from the files' own tags. Files without an ID are kept as
orphans, matched by a fuzzy filename signature so that "artist - title.mp3"
still finds "Artist - Title.mp3".

The index is persisted as JSON between runs. Only confirmed on-disk changes
(a completed rename, a finalized file) are ever recorded.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from ..exceptions import TrackNotIndexedError
from ..utils.helpers import atomic_write_text, ensure_directory, filename_signature
from ..utils.logger import get_logger, log_performance


logger = get_logger(__name__)

INDEX_VERSION = 1


@dataclass
class IndexEntry:
    filename: str
    signature: str


@dataclass
class IndexMatch:
    """
    Result of looking a track up in the index

    Attributes:
        path: Local file currently holding the track
        matches: True when that file already has the expected name
    """
    path: Path
    matches: bool


class RenameIndex:
    """Remote ID -> local filename mapping for one folder"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.entries: Dict[str, IndexEntry] = {}
        self.orphans: Dict[str, str] = {}  # signature -> filename

    @classmethod
    @log_performance
    def build(
        cls,
        root: Union[str, Path],
        previous: Optional['RenameIndex'] = None,
        reader: Optional[Callable[[Path], Optional[str]]] = None
    ) -> 'RenameIndex':
        """
        Scan root and build a fresh index

        Args:
            root: Music folder (top level only is scanned)
            previous: Previously persisted index whose still-valid entries are kept
            reader: Function returning the remote ID stored in a file

        Returns:
            RenameIndex instance
        """
        if reader is None:
            from ..audio.metadata import read_remote_id
            reader = read_remote_id

        index = cls(root)
        claimed = set()

        for path in sorted(index.root.glob('*.mp3')):
            if path.name.startswith('.') or not path.is_file():
                continue

            remote_id = reader(path)
            signature = filename_signature(path.name)
            if remote_id:
                if remote_id in index.entries:
                    logger.debug(f"Duplicate ID {remote_id}: {path.name} ignored")
                    continue
                index.entries[remote_id] = IndexEntry(path.name, signature)
                claimed.add(path.name)
            else:
                index.orphans.setdefault(signature, path.name)

        if previous is not None and previous.root == index.root:
            for remote_id, entry in previous.entries.items():
                if remote_id in index.entries or entry.filename in claimed:
                    continue
                if (index.root / entry.filename).is_file():
                    index.entries[remote_id] = entry
                    claimed.add(entry.filename)
                    index.orphans.pop(entry.signature, None)

        logger.debug(f"Indexed {len(index.entries)} tracks and {len(index.orphans)} orphans in {index.root}")
        return index

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, remote_id: str) -> bool:
        return remote_id in self.entries

    def match(self, remote_id: str, expected: str) -> IndexMatch:
        """
        Find the local file holding a track

        Args:
            remote_id: Remote track ID
            expected: Canonical filename of the track

        Returns:
            IndexMatch with the current file and whether it is already canonical

        Raises:
            TrackNotIndexedError: If the index knows no file for the track
        """
        entry = self.entries.get(remote_id)
        if entry is not None:
            if entry.filename == expected:
                return IndexMatch(self.root / expected, True)
            path = self.root / entry.filename
            if path.is_file():
                return IndexMatch(path, False)
            raise TrackNotIndexedError(
                f"Indexed file {entry.filename} for {remote_id} no longer exists",
                {'id': remote_id}
            )

        signature = filename_signature(expected)
        orphan = self.orphans.get(signature)
        if orphan is not None:
            return IndexMatch(self.root / orphan, orphan == expected)

        raise TrackNotIndexedError(f"No local file indexed for {remote_id}", {'id': remote_id})

    def rename(self, remote_id: str, filename: str) -> None:
        """Record a completed on-disk rename"""
        self.record(remote_id, filename)

    def record(self, remote_id: str, filename: str) -> None:
        """Record that filename now holds remote_id"""
        signature = filename_signature(filename)
        previous = self.entries.get(remote_id)
        if previous is not None and previous.signature != signature:
            self.orphans.pop(previous.signature, None)
        self.orphans = {sig: name for sig, name in self.orphans.items() if name != filename}
        self.orphans.pop(signature, None)
        self.entries[remote_id] = IndexEntry(filename, signature)

    def to_dict(self) -> Dict:
        return {
            'version': INDEX_VERSION,
            'root': str(self.root.resolve()),
            'entries': {
                remote_id: {'filename': entry.filename, 'signature': entry.signature}
                for remote_id, entry in sorted(self.entries.items())
            },
        }

    def persist(self, path: Union[str, Path]) -> bool:
        """
        Write the index to disk atomically

        Returns:
            True on success; failures are logged as warnings
        """
        path = Path(path)
        try:
            ensure_directory(path.parent)
            atomic_write_text(path, json.dumps(self.to_dict(), indent=2, ensure_ascii=False))
        except OSError as e:
            logger.warning(f"Unable to persist index to {path}: {e}")
            return False
        logger.debug(f"Index persisted: {len(self.entries)} entries -> {path}")
        return True

    @classmethod
    def load(cls, path: Union[str, Path], root: Union[str, Path]) -> 'RenameIndex':
        """
        Load a persisted index

        Missing, unreadable or foreign (other root) files yield an empty index.
        """
        index = cls(root)
        path = Path(path)
        if not path.is_file():
            return index

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring unreadable index {path}: {e}")
            return index

        if not isinstance(data, dict) or data.get('version') != INDEX_VERSION:
            return index
        if data.get('root') != str(Path(root).resolve()):
            logger.debug(f"Index {path} belongs to {data.get('root')}, ignoring")
            return index

        entries = data.get('entries') or {}
        if not isinstance(entries, dict):
            logger.debug(f"Ignoring malformed index {path}")
            return index

        for remote_id, raw in entries.items():
            if not isinstance(raw, dict):
                continue
            filename = raw.get('filename')
            if not isinstance(filename, str) or not filename:
                continue
            signature = raw.get('signature')
            if not isinstance(signature, str) or not signature:
                signature = filename_signature(filename)
            index.entries[remote_id] = IndexEntry(filename, signature)
        return index
