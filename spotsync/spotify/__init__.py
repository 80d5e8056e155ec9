"""
Spotify integration package
Track/playlist models and the Spotify Web API client
"""

from .models import Track, Playlist, JUNK_WILDCARDS, best_image_url

__all__ = [
    'Track',
    'Playlist',
    'JUNK_WILDCARDS',
    'best_image_url',
]
