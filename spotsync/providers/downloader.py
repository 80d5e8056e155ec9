"""
Audio download through yt-dlp

Downloads the best audio stream of a URL and converts it to MP3 with the
FFmpegExtractAudio postprocessor. yt-dlp names its output from a template,
so the destination's suffix is dropped and "%(ext)s" appended; after the
postprocessor runs the file sits exactly at the destination path.

Partial downloads (.part, .ytdl, fragments) are left for the junk cleanup.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yt_dlp
from yt_dlp.utils import DownloadError as YtDlpDownloadError

from ..config.settings import get_settings
from ..exceptions import DownloadError
from ..utils.logger import get_logger


class AudioDownloader:
    """yt-dlp wrapper producing MP3 files at a given path"""

    def __init__(self, bitrate: Optional[int] = None):
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.bitrate = bitrate or self.settings.download.bitrate
        self.retries = self.settings.download.retries
        self.timeout = self.settings.download.timeout

    def _get_ydl_options(self, destination: Path) -> Dict[str, Any]:
        template = str(destination.with_suffix('')) + '.%(ext)s'
        return {
            'format': 'bestaudio/best',
            'outtmpl': template,
            'quiet': True,
            'no_warnings': True,
            'noprogress': True,
            'noplaylist': True,
            'overwrites': True,
            'socket_timeout': self.timeout,
            'retries': self.retries,
            'fragment_retries': self.retries,
            'file_access_retries': self.retries,
            'postprocessors': [{
                'key': 'FFmpegExtractAudio',
                'preferredcodec': 'mp3',
                'preferredquality': str(self.bitrate),
            }],
        }

    def download(self, url: str, destination: Path, provider: Optional[str] = None) -> None:
        """
        Download url as MP3 to destination

        Args:
            url: Media URL
            destination: Target .mp3 path
            provider: Provider name, attached to errors

        Raises:
            DownloadError: If yt-dlp fails or no file was produced
        """
        destination = Path(destination)
        self.logger.debug(f"Downloading {url} -> {destination.name}")

        try:
            with yt_dlp.YoutubeDL(self._get_ydl_options(destination)) as ydl:
                ydl.download([url])
        except YtDlpDownloadError as e:
            raise DownloadError(f"Download of {url} failed: {e}", {'url': url}, provider=provider) from e

        if not destination.is_file():
            raise DownloadError(f"Download of {url} produced no file", {'url': url}, provider=provider)

        self.logger.debug(f"Downloaded {destination.name} ({destination.stat().st_size} bytes)")
