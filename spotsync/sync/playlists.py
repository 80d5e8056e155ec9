"""
Playlist file export

Writes one playlist file per synchronized playlist into the music folder,
named after the playlist ("Summer Hits" -> summer-hits.m3u). Entries are
relative to the folder so the collection can be moved as a whole.
"""

from pathlib import Path
from typing import Iterable, List, Union

from ..spotify.models import Playlist
from ..utils.helpers import atomic_write_text, slugify
from ..utils.logger import get_logger


FORMATS = ('m3u', 'pls')


class PlaylistExporter:
    """Renders playlists to .m3u or .pls files"""

    def __init__(self, folder: Union[str, Path], fmt: str = 'm3u'):
        if fmt not in FORMATS:
            raise ValueError(f"Unknown playlist format: {fmt}")
        self.folder = Path(folder)
        self.fmt = fmt
        self.logger = get_logger(__name__)

    def path_for(self, playlist: Playlist) -> Path:
        return self.folder / f"{slugify(playlist.name or playlist.id)}.{self.fmt}"

    def export(self, playlist: Playlist) -> bool:
        """
        Write a playlist file

        Returns:
            True when written; write failures are logged as warnings
        """
        path = self.path_for(playlist)
        content = playlist.to_pls(self.folder) if self.fmt == 'pls' else playlist.to_m3u(self.folder)
        try:
            atomic_write_text(path, content)
        except OSError as e:
            self.logger.warning(f"Unable to write playlist {path.name}: {e}")
            return False
        self.logger.debug(f"Playlist written: {path.name}")
        return True

    def export_all(self, playlists: Iterable[Playlist]) -> List[Path]:
        return [self.path_for(p) for p in playlists if self.export(p)]
