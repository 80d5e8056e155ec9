"""
ID3 tag writing and reading for synchronized MP3 files

Besides the standard frames (title, artists, album, year, track and disc
numbers, lyrics, cover art) every file carries three user-defined TXXX frames:

- SPOTSYNC_ID: the remote track ID, the link between a local file and its
  Spotify track that the rename index is built from
- SPOTSYNC_ORIGIN: the provider URL the audio was downloaded from, used to
  recognise an "already optimal" local file
- SPOTSYNC_ARTWORK: the remote artwork URL

Frames are always written with UTF-8 encoding (encoding=3). Cover art is
embedded as APIC type 3 (front cover), the type every player understands.

Artwork is fetched through a requests session and re-encoded with Pillow
into an RGB JPEG no larger than the configured maximum size.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import mutagen
import requests
from mutagen.id3 import ID3, TIT2, TPE1, TALB, TDRC, TRCK, TPOS, COMM, APIC, USLT, TXXX
from mutagen.mp3 import MP3
from PIL import Image

from ..config.settings import get_settings
from ..exceptions import ArtworkError, MetadataError
from ..spotify.models import Track
from ..utils.logger import get_logger


ID_FRAME = 'SPOTSYNC_ID'
ORIGIN_FRAME = 'SPOTSYNC_ORIGIN'
ARTWORK_FRAME = 'SPOTSYNC_ARTWORK'

COMMENT = "Synchronized with spotsync"


def _load_mp3(path: Union[str, Path]) -> MP3:
    """Open an MP3 file making sure it carries an ID3 container"""
    try:
        audio = MP3(str(path), ID3=ID3)
    except mutagen.MutagenError as e:
        raise MetadataError(f"Cannot read {Path(path).name}: {e}", {'path': str(path)}) from e
    if audio.tags is None:
        audio.add_tags()
    return audio


def _user_text(tags: ID3, desc: str) -> Optional[str]:
    frame = tags.get(f'TXXX:{desc}')
    if frame and frame.text:
        return str(frame.text[0])
    return None


def _text(tags: ID3, key: str) -> Optional[str]:
    frame = tags.get(key)
    if frame and frame.text:
        return str(frame.text[0])
    return None


def _number(value: Optional[str], default: int) -> int:
    """Parse "3" or "3/12" frames"""
    if not value:
        return default
    try:
        return int(value.split('/')[0])
    except ValueError:
        return default


class TagWriter:
    """
    Writes the full tag set of a track into an MP3 file

    Existing tags are dropped first so stale frames from a previous provider
    never survive a metadata flush.
    """

    def __init__(self, id3_version: Optional[str] = None, include_lyrics: Optional[bool] = None,
                 include_artwork: Optional[bool] = None):
        settings = get_settings()
        self.logger = get_logger(__name__)
        self.id3_version = id3_version or settings.metadata.id3_version
        self.include_lyrics = settings.metadata.include_lyrics if include_lyrics is None else include_lyrics
        self.include_artwork = settings.metadata.include_artwork if include_artwork is None else include_artwork

    def flush(self, track: Track, path: Union[str, Path]) -> None:
        """
        Replace the tags of path with the metadata of track

        Args:
            track: Track whose metadata (and lyrics/artwork, if set) is written
            path: MP3 file to tag

        Raises:
            MetadataError: If the file cannot be read or saved
        """
        audio = _load_mp3(path)
        tags = audio.tags
        tags.clear()

        tags.add(TIT2(encoding=3, text=track.title))
        tags.add(TPE1(encoding=3, text=track.artists or [track.artist]))
        if track.album:
            tags.add(TALB(encoding=3, text=track.album))
        if track.year:
            tags.add(TDRC(encoding=3, text=track.year))
        if track.track_number:
            tags.add(TRCK(encoding=3, text=str(track.track_number)))
        if track.disc_number:
            tags.add(TPOS(encoding=3, text=str(track.disc_number)))

        tags.add(COMM(encoding=3, lang='eng', desc='', text=COMMENT))
        tags.add(TXXX(encoding=3, desc=ID_FRAME, text=track.id))
        if track.url:
            tags.add(TXXX(encoding=3, desc=ORIGIN_FRAME, text=track.url))
        if track.artwork_url:
            tags.add(TXXX(encoding=3, desc=ARTWORK_FRAME, text=track.artwork_url))

        if self.include_lyrics and track.lyrics:
            tags.add(USLT(encoding=3, lang='eng', desc='', text=track.lyrics))

        if self.include_artwork and track.artwork:
            tags.add(APIC(
                encoding=3,
                mime='image/jpeg',
                type=3,  # Cover (front)
                desc='Cover',
                data=track.artwork
            ))

        try:
            audio.save(v2_version=4 if self.id3_version == "2.4" else 3)
        except (mutagen.MutagenError, OSError) as e:
            raise MetadataError(f"Cannot save tags of {Path(path).name}: {e}", {'path': str(path)}) from e

        self.logger.debug(f"Metadata flushed: {Path(path).name}")


def read_remote_id(path: Union[str, Path]) -> Optional[str]:
    """
    Remote track ID stored in a file, if any

    Args:
        path: MP3 file

    Returns:
        The ID, or None when the file is untagged or unreadable
    """
    try:
        audio = _load_mp3(path)
    except MetadataError:
        return None
    return _user_text(audio.tags, ID_FRAME)


def read_origin_url(path: Union[str, Path]) -> Optional[str]:
    """Provider URL a file was downloaded from, if recorded"""
    try:
        audio = _load_mp3(path)
    except MetadataError:
        return None
    return _user_text(audio.tags, ORIGIN_FRAME)


def read_local_track(path: Union[str, Path]) -> Track:
    """
    Rebuild a Track from the tags of a local file

    Used for manual fixes, where the user points at a file instead of a
    remote source.

    Args:
        path: MP3 file previously written by spotsync

    Returns:
        Track with local_path set to path

    Raises:
        MetadataError: If the file cannot be read or carries no remote ID
    """
    audio = _load_mp3(path)
    tags = audio.tags

    remote_id = _user_text(tags, ID_FRAME)
    if not remote_id:
        raise MetadataError(f"{Path(path).name} carries no spotsync track ID", {'path': str(path)})

    artists_frame = tags.get('TPE1')
    artists = [str(a) for a in artists_frame.text] if artists_frame else []
    length = getattr(audio.info, 'length', 0) or 0

    return Track(
        id=remote_id,
        title=_text(tags, 'TIT2') or Path(path).stem,
        artists=artists,
        album=_text(tags, 'TALB') or "",
        duration_ms=int(length * 1000),
        track_number=_number(_text(tags, 'TRCK'), 0),
        disc_number=_number(_text(tags, 'TPOS'), 1),
        release_date=_text(tags, 'TDRC') or "",
        artwork_url=_user_text(tags, ARTWORK_FRAME),
        url=_user_text(tags, ORIGIN_FRAME),
        local_path=Path(path),
    )


class ArtworkFetcher:
    """Downloads album artwork and prepares it for embedding"""

    def __init__(self, max_size: Optional[int] = None, session: Optional[requests.Session] = None):
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.max_size = max_size or self.settings.metadata.artwork_max_size

        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': self.settings.network.user_agent})

    def fetch(self, url: str) -> bytes:
        """
        Download artwork and re-encode it as JPEG

        Args:
            url: Image URL

        Returns:
            JPEG bytes

        Raises:
            ArtworkError: If the download or the image decoding fails
        """
        try:
            response = self.session.get(url, timeout=self.settings.network.request_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ArtworkError(f"Failed to download artwork: {e}", {'url': url}) from e

        try:
            with Image.open(BytesIO(response.content)) as img:
                if img.mode != 'RGB':
                    img = img.convert('RGB')
                if img.width > self.max_size or img.height > self.max_size:
                    img.thumbnail((self.max_size, self.max_size), Image.Resampling.LANCZOS)
                output = BytesIO()
                img.save(output, format='JPEG', quality=90, optimize=True)
                return output.getvalue()
        except (OSError, ValueError) as e:
            raise ArtworkError(f"Failed to process artwork: {e}", {'url': url}) from e
