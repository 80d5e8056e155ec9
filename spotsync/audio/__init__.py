"""
Audio package
ID3 tagging, artwork preparation and loudness normalization
"""

from .metadata import TagWriter, ArtworkFetcher, read_local_track, read_origin_url, read_remote_id
from .processor import LoudnessNormalizer

__all__ = [
    'TagWriter',
    'ArtworkFetcher',
    'read_local_track',
    'read_origin_url',
    'read_remote_id',
    'LoudnessNormalizer',
]
