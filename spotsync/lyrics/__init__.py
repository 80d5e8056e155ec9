"""
Lyrics package
Lyrics sources (Genius, syncedlyrics) and the ordered fetcher
"""

from .base import LyricsSource
from .processor import LyricsFetcher, build_lyrics_fetcher

__all__ = [
    'LyricsSource',
    'LyricsFetcher',
    'build_lyrics_fetcher',
]
