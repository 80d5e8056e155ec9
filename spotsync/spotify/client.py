"""
Spotify API client for library, album and playlist retrieval

Thin layer over spotipy that adds the things the synchronizer relies on:

- Rate limiting: a minimum interval between requests plus Retry-After
  handling for 429 responses
- Token recovery: a 401 response rebuilds the client once and retries
- Pagination: library, album and playlist listings are walked page by page
  until the API returns an empty page
- Conversion: raw API objects become spotsync Track/Playlist models

Every failure that prevents a listing from being completed surfaces as
SourceFetchError, which aborts the run: a partial listing would make the
synchronizer believe tracks were removed remotely.

Usage:

    client = get_spotify_client()
    tracks = client.fetch_library()
    playlist = client.fetch_playlist("spotify:playlist:37i9dQZF1DXcBWIGoYBM5M")
"""

import re
import time
from typing import Any, Callable, Dict, List, Optional

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from ..config.auth import get_auth
from ..config.settings import get_settings
from ..exceptions import SourceFetchError
from ..utils.logger import get_logger
from .models import Playlist, Track


SPOTIFY_ID = re.compile(r'^[a-zA-Z0-9]{22}$')


class SpotifyClient:
    """
    Spotify Web API client with rate limiting and paginated fetching

    The spotipy connection is created lazily on the first request so that
    commands which never talk to Spotify do not trigger authorization.
    """

    LIBRARY_PAGE = 50
    ALBUM_PAGE = 50
    PLAYLIST_PAGE = 100

    def __init__(self, auth=None):
        """
        Initialize Spotify API client

        Args:
            auth: Authentication manager, defaults to the global one
        """
        self.auth = auth or get_auth()
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self._client: Optional[spotipy.Spotify] = None
        self._user_id: Optional[str] = None

        self.last_request_time = 0.0
        self.min_request_interval = 0.1

    @property
    def client(self) -> spotipy.Spotify:
        """Lazily authenticated spotipy client"""
        if self._client is None:
            self._client = self.auth.get_spotify_client()
        return self._client

    def _rate_limit(self) -> None:
        """Keep at least min_request_interval between two requests"""
        elapsed = time.time() - self.last_request_time
        if elapsed < self.min_request_interval:
            time.sleep(self.min_request_interval - elapsed)
        self.last_request_time = time.time()

    def _make_request(self, method: str, *args, **kwargs) -> Any:
        """
        Rate-limited API call with token and rate limit recovery

        Args:
            method: Name of the spotipy.Spotify method to call
            *args: Positional arguments for the method
            **kwargs: Keyword arguments for the method

        Returns:
            Raw API response

        Raises:
            SourceFetchError: For errors that cannot be recovered
        """
        self._rate_limit()
        try:
            return self._call(method, *args, **kwargs)
        except SpotifyException as e:
            if e.http_status == 401:
                self.logger.debug("Spotify token rejected, rebuilding client")
                self._client = None
                self._rate_limit()
                return self._retry(method, *args, **kwargs)
            if e.http_status == 429:
                headers = e.headers or {}
                retry_after = int(headers.get('Retry-After', 1))
                self.logger.warning(f"Rate limited by Spotify, waiting {retry_after} seconds...")
                time.sleep(retry_after)
                self._rate_limit()
                return self._retry(method, *args, **kwargs)
            raise SourceFetchError(
                f"Spotify request {method} failed: {e.msg}",
                {'status': e.http_status, 'args': args}
            ) from e
        except requests.RequestException as e:
            raise SourceFetchError(f"Spotify request {method} failed: {e}", {'args': args}) from e

    def _call(self, method: str, *args, **kwargs) -> Any:
        func: Callable = getattr(self.client, method)
        return func(*args, **kwargs)

    def _retry(self, method: str, *args, **kwargs) -> Any:
        try:
            return self._call(method, *args, **kwargs)
        except (SpotifyException, requests.RequestException) as e:
            raise SourceFetchError(f"Spotify request {method} failed after retry: {e}", {'args': args}) from e

    def current_user_id(self) -> str:
        """
        ID of the authenticated user, used to scope the metadata cache

        Raises:
            SourceFetchError: If the profile cannot be retrieved
        """
        if self._user_id is None:
            profile = self._make_request('current_user') or {}
            if not profile.get('id'):
                raise SourceFetchError("Spotify returned a profile without user id")
            self._user_id = profile['id']
        return self._user_id

    def fetch_library(self) -> List[Track]:
        """
        Retrieve the user's saved tracks (liked songs)

        Returns:
            Saved tracks in library order

        Raises:
            SourceFetchError: If any page cannot be fetched
        """
        self.logger.info("Fetching user's liked songs")
        tracks: List[Track] = []
        offset = 0

        while True:
            results = self._make_request(
                'current_user_saved_tracks',
                limit=self.LIBRARY_PAGE,
                offset=offset
            ) or {}
            items = results.get('items', [])
            if not items:
                break

            for item in items:
                track = self._parse_item(item)
                if track:
                    tracks.append(track)

            offset += len(items)
            if len(tracks) and len(tracks) % 500 == 0:
                self.logger.debug(f"Fetched {len(tracks)} liked songs so far")
            if not results.get('next'):
                break

        self.logger.info(f"Fetched {len(tracks)} liked songs")
        return tracks

    def fetch_album(self, uri: str) -> List[Track]:
        """
        Retrieve all tracks of an album

        Album track listings omit the album object, so the album is fetched
        once and attached to every track.

        Args:
            uri: Album URI, URL or ID

        Returns:
            Album tracks in disc/track order

        Raises:
            SourceFetchError: If the album cannot be fetched
        """
        album_id = self.extract_id(uri, 'album')
        album = self._make_request('album', album_id) or {}
        self.logger.info(f"Fetching album: {album.get('name', album_id)}")

        tracks: List[Track] = []
        offset = 0
        while True:
            results = self._make_request(
                'album_tracks',
                album_id,
                limit=self.ALBUM_PAGE,
                offset=offset
            ) or {}
            items = results.get('items', [])
            if not items:
                break

            for item in items:
                track = self._parse_item(item, album=album)
                if track:
                    tracks.append(track)

            offset += len(items)
            if not results.get('next'):
                break

        return tracks

    def playlist_info(self, uri: str) -> Dict[str, str]:
        """
        Name and owner of a playlist

        Args:
            uri: Playlist URI, URL or ID

        Returns:
            Dictionary with 'id', 'name' and 'owner'

        Raises:
            SourceFetchError: If the lookup fails
        """
        playlist_id = self.extract_id(uri, 'playlist')
        data = self._make_request(
            'playlist',
            playlist_id,
            fields='id,name,owner(display_name,id)'
        ) or {}
        owner = data.get('owner') or {}
        return {
            'id': data.get('id', playlist_id),
            'name': data.get('name', ''),
            'owner': owner.get('display_name') or owner.get('id', ''),
        }

    def fetch_playlist(self, uri: str) -> Playlist:
        """
        Retrieve a playlist and its tracks in playlist order

        A failed name lookup leaves the name empty; a failed track listing
        is fatal.

        Args:
            uri: Playlist URI, URL or ID

        Returns:
            Playlist with tracks

        Raises:
            SourceFetchError: If the track listing cannot be fetched
        """
        playlist_id = self.extract_id(uri, 'playlist')

        try:
            info = self.playlist_info(playlist_id)
        except SourceFetchError as e:
            self.logger.debug(f"Playlist info lookup failed for {playlist_id}: {e}")
            info = {'id': playlist_id, 'name': '', 'owner': ''}

        playlist = Playlist(id=playlist_id, name=info['name'], owner=info['owner'])
        self.logger.info(f"Fetching playlist: {playlist.display_name}")

        offset = 0
        while True:
            results = self._make_request(
                'playlist_items',
                playlist_id,
                limit=self.PLAYLIST_PAGE,
                offset=offset,
                additional_types=('track',)
            ) or {}
            items = results.get('items', [])
            if not items:
                break

            for item in items:
                track = self._parse_item(item)
                if track:
                    playlist.tracks.append(track)

            offset += len(items)
            if not results.get('next'):
                break

        return playlist

    def _parse_item(self, item: Dict[str, Any], album: Optional[Dict[str, Any]] = None) -> Optional[Track]:
        """Convert a listing item, skipping local files, episodes and removed tracks"""
        if not item:
            return None

        track_data = item.get('track') if 'track' in item else item
        if not track_data or not track_data.get('id'):
            return None
        if item.get('is_local') or track_data.get('is_local'):
            return None
        if track_data.get('type', 'track') != 'track':
            return None

        try:
            return Track.from_spotify_data(track_data, album=album)
        except (KeyError, TypeError) as e:
            self.logger.warning(f"Skipping malformed track {track_data.get('id')}: {e}")
            return None

    @staticmethod
    def extract_id(uri: str, kind: str) -> str:
        """
        Extract a Spotify ID from a URI, web URL or bare ID

        Args:
            uri: "spotify:<kind>:<id>", "https://open.spotify.com/<kind>/<id>?si=..." or "<id>"
            kind: Expected resource kind ('album', 'playlist', 'track')

        Returns:
            22 character Spotify ID

        Raises:
            SourceFetchError: If the input is not a valid reference of that kind
        """
        value = (uri or '').strip()

        if SPOTIFY_ID.match(value):
            return value

        if value.startswith('spotify:'):
            parts = value.split(':')
            if len(parts) >= 3 and parts[1] == kind and SPOTIFY_ID.match(parts[2]):
                return parts[2]
        elif 'spotify.com' in value and f'{kind}/' in value:
            candidate = value.split(f'{kind}/')[-1].split('?')[0].split('/')[0]
            if SPOTIFY_ID.match(candidate):
                return candidate

        raise SourceFetchError(f"Invalid Spotify {kind} reference: {uri}")


# Global client instance
_client_instance: Optional[SpotifyClient] = None


def get_spotify_client() -> SpotifyClient:
    """
    Get the global Spotify client instance (singleton pattern)

    Returns:
        Global SpotifyClient instance
    """
    global _client_instance
    if not _client_instance:
        _client_instance = SpotifyClient()
    return _client_instance


def reset_spotify_client() -> None:
    """Reset the global Spotify client instance"""
    global _client_instance
    _client_instance = None
