"""
spotsync: keep a local MP3 collection in sync with Spotify

Tracks from the user's liked songs, albums and playlists are looked up on
YouTube Music (falling back to YouTube), downloaded with yt-dlp, loudness
normalized and tagged with metadata, lyrics and cover art.

## Core Architecture

**Configuration (`spotsync/config/`)**
- YAML settings with environment overrides and album/playlist aliases
- Spotify OAuth2 with a cached, owner-only token file

**Spotify Integration (`spotsync/spotify/`)**
- Paginated library, album and playlist retrieval with rate limiting
- Track and Playlist models, including playlist file rendering

**Providers (`spotsync/providers/`)**
- Fixed-priority fallback chain over YouTube Music and YouTube
- Candidate scoring, interactive confirmation and manual URL input

**Synchronization (`spotsync/sync/`)**
- Rename index that recognizes files renamed since the last run
- Metadata cache with a 30 minute lifetime
- Deduplicated working set, bounded post-processing pool, failure report

**Audio and Lyrics (`spotsync/audio/`, `spotsync/lyrics/`)**
- ID3 tagging with mutagen, loudness normalization with pydub
- Genius and syncedlyrics as lyrics sources

Subpackages are imported lazily by the CLI so that `spotsync --version`
never touches the network stack.
"""

__version__ = "1.0.0"
__author__ = "spotsync contributors"
__license__ = "MIT"

from .exceptions import SpotSyncError

__all__ = ['__version__', 'SpotSyncError']
