"""
Data models for synchronized tracks and playlists

A Track is the unit of synchronization. Its identity is the remote (Spotify)
track ID plus a canonical, human-readable filename derived from artist and
title. The canonical *temporary* filename doubles as the key that collapses
duplicates when the same track arrives from several sources (library, albums,
playlists).

Tracks are mutable during a run: the provider URL they were downloaded from,
their lyrics and their artwork bytes are filled in as processing proceeds.
Only the remote metadata is serialized into the metadata cache.

A Playlist keeps its tracks in remote order so exported playlist files
(extended M3U or PLS) follow the order the user sees on Spotify.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..utils.helpers import format_duration, sanitize_filename


AUDIO_EXTENSION = ".mp3"

# Leftovers of interrupted runs: our temporary files plus yt-dlp fragments
JUNK_WILDCARDS = [
    f".*.part{AUDIO_EXTENSION}",
    "*.part",
    "*.ytdl",
    "*.part-Frag*",
    f".*.norm{AUDIO_EXTENSION}",
]


def best_image_url(images: List[Dict[str, Any]], min_size: int = 300) -> Optional[str]:
    """
    Pick the best artwork URL from a Spotify image list

    Prefers the largest image at least min_size wide or high, otherwise the
    largest available one.

    Args:
        images: Spotify image objects ({'url', 'width', 'height'})
        min_size: Minimum pixel dimension

    Returns:
        Image URL or None if no images are available
    """
    if not images:
        return None

    def area(img: Dict[str, Any]) -> int:
        return (img.get('width') or 0) * (img.get('height') or 0)

    suitable = [
        img for img in images
        if (img.get('width') or 0) >= min_size or (img.get('height') or 0) >= min_size
    ]
    return max(suitable or images, key=area).get('url')


@dataclass
class Track:
    """
    A remote track and everything learned about it during a run

    Attributes:
        id: Stable remote (Spotify) track ID
        title: Track title
        artists: Artist names, primary artist first
        album: Album name
        duration_ms: Remote duration in milliseconds
        track_number: Position on the album
        disc_number: Disc on the album
        release_date: Album release date (YYYY, YYYY-MM or YYYY-MM-DD)
        artwork_url: Remote album artwork URL
        spotify_url: Web URL of the track on Spotify
        url: Provider URL the local file was (or will be) downloaded from
        lyrics: Lyrics text, filled during the run
        artwork: Artwork bytes, filled during the run
        local_path: Out-of-folder file supplied for a manual fix
    """
    id: str
    title: str
    artists: List[str] = field(default_factory=list)
    album: str = ""
    duration_ms: int = 0
    track_number: int = 0
    disc_number: int = 1
    release_date: str = ""
    artwork_url: Optional[str] = None
    spotify_url: Optional[str] = None
    url: Optional[str] = None
    lyrics: Optional[str] = field(default=None, repr=False)
    artwork: Optional[bytes] = field(default=None, repr=False)
    local_path: Optional[Path] = field(default=None, repr=False)

    @classmethod
    def from_spotify_data(
        cls,
        data: Dict[str, Any],
        album: Optional[Dict[str, Any]] = None
    ) -> 'Track':
        """
        Build a Track from a Spotify API track object

        Accepts both bare track objects and playlist/library items that nest
        the track under a 'track' key. Album endpoints return simplified
        tracks without an album object; pass the album separately then.

        Args:
            data: Raw track (or item) data from the Spotify API
            album: Album object to use when the track carries none

        Returns:
            Track instance
        """
        track_data = data.get('track') or data
        album_data = track_data.get('album') or album or {}

        return cls(
            id=track_data['id'],
            title=track_data.get('name', ''),
            artists=[a.get('name', '') for a in track_data.get('artists', []) if a.get('name')],
            album=album_data.get('name', ''),
            duration_ms=track_data.get('duration_ms') or 0,
            track_number=track_data.get('track_number') or 0,
            disc_number=track_data.get('disc_number') or 1,
            release_date=album_data.get('release_date') or '',
            artwork_url=best_image_url(album_data.get('images', [])),
            spotify_url=(track_data.get('external_urls') or {}).get('spotify'),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Track':
        """Rebuild a Track from its cached dictionary form"""
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            artists=list(data.get('artists', [])),
            album=data.get('album', ''),
            duration_ms=data.get('duration_ms', 0),
            track_number=data.get('track_number', 0),
            disc_number=data.get('disc_number', 1),
            release_date=data.get('release_date', ''),
            artwork_url=data.get('artwork_url'),
            spotify_url=data.get('spotify_url'),
            url=data.get('url'),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form for the metadata cache (no lyrics, no artwork bytes)"""
        return {
            'id': self.id,
            'title': self.title,
            'artists': list(self.artists),
            'album': self.album,
            'duration_ms': self.duration_ms,
            'track_number': self.track_number,
            'disc_number': self.disc_number,
            'release_date': self.release_date,
            'artwork_url': self.artwork_url,
            'spotify_url': self.spotify_url,
            'url': self.url,
        }

    @property
    def artist(self) -> str:
        """Primary artist name"""
        return self.artists[0] if self.artists else "Unknown Artist"

    @property
    def all_artists(self) -> str:
        return ", ".join(self.artists) if self.artists else self.artist

    @property
    def duration(self) -> int:
        """Duration in whole seconds"""
        return round(self.duration_ms / 1000)

    @property
    def duration_str(self) -> str:
        return format_duration(self.duration)

    @property
    def year(self) -> str:
        return self.release_date[:4] if self.release_date else ""

    @property
    def basename(self) -> str:
        """Human readable "Artist - Title" used to derive filenames"""
        return sanitize_filename(f"{self.artist} - {self.title}")

    @property
    def filename(self) -> str:
        """Canonical local filename"""
        return f"{self.basename}{AUDIO_EXTENSION}"

    @property
    def temporary_filename(self) -> str:
        """Working file name, unique per track identity (working set dedup key)"""
        return f".{self.basename}.part{AUDIO_EXTENSION}"

    def path(self, folder: Path) -> Path:
        return Path(folder) / self.filename

    def temporary_path(self, folder: Path) -> Path:
        return Path(folder) / self.temporary_filename

    def is_local(self, folder: Path) -> bool:
        """Whether the canonical file already exists in folder"""
        return self.path(folder).is_file()

    def __str__(self) -> str:
        return self.basename


@dataclass
class Playlist:
    """
    A remote playlist with its tracks in remote order

    Attributes:
        id: Remote playlist ID
        name: Playlist name ("" when the lookup failed)
        owner: Owner display name
        tracks: Tracks in playlist order
    """
    id: str
    name: str = ""
    owner: str = ""
    tracks: List[Track] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def to_m3u(self, folder: Path) -> str:
        """
        Render the playlist as extended M3U

        Tracks without a local file are left out.

        Args:
            folder: Local music folder, paths are written relative to it

        Returns:
            Playlist file content
        """
        lines = ["#EXTM3U"]
        for track in self._local_tracks(folder):
            lines.append(f"#EXTINF:{track.duration},{track.artist} - {track.title}")
            lines.append(track.filename)
        return "\n".join(lines) + "\n"

    def to_pls(self, folder: Path) -> str:
        """
        Render the playlist as PLS

        Args:
            folder: Local music folder, paths are written relative to it

        Returns:
            Playlist file content
        """
        tracks = self._local_tracks(folder)
        lines = ["[playlist]", ""]
        for number, track in enumerate(tracks, 1):
            lines.append(f"File{number}={track.filename}")
            lines.append(f"Title{number}={track.artist} - {track.title}")
            lines.append(f"Length{number}={track.duration}")
            lines.append("")
        lines.append(f"NumberOfEntries={len(tracks)}")
        lines.append("Version=2")
        return "\n".join(lines) + "\n"

    def _local_tracks(self, folder: Path) -> List[Track]:
        return [track for track in self.tracks if track.is_local(folder)]
