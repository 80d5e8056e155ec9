"""
Loudness normalization for downloaded tracks

Normalization is peak based: the maximum level of the file is measured and,
when the loudest sample sits below full scale, the whole track is raised by
that amount so it peaks at 0 dBFS. Files that already reach full scale are
left untouched.

pydub decodes and re-encodes through FFmpeg, which must be on PATH.
"""

import os
from pathlib import Path
from typing import Optional, Union

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError, CouldntEncodeError

from ..config.settings import get_settings
from ..exceptions import NormalizationError
from ..utils.logger import get_logger


class LoudnessNormalizer:
    """Measures the peak level of a file and applies gain to it"""

    def __init__(self, bitrate: Optional[int] = None):
        """
        Args:
            bitrate: MP3 bitrate in kbps used when re-encoding, defaults to the download bitrate
        """
        self.logger = get_logger(__name__)
        self.bitrate = bitrate or get_settings().download.bitrate

    def measure(self, path: Union[str, Path]) -> float:
        """
        Peak level of a file

        Args:
            path: Audio file

        Returns:
            Maximum level in dBFS (0.0 is full scale, negative is quieter)

        Raises:
            NormalizationError: If the file cannot be decoded
        """
        try:
            audio = AudioSegment.from_file(str(path))
        except (CouldntDecodeError, OSError, IndexError) as e:
            raise NormalizationError(f"Cannot measure {Path(path).name}: {e}", {'path': str(path)}) from e

        level = audio.max_dBFS
        self.logger.debug(f"Peak level of {Path(path).name}: {level:.2f} dBFS")
        return level

    def apply_gain(self, delta: float, path: Union[str, Path]) -> None:
        """
        Apply gain to a file in place

        The result is encoded next to the file and swapped in with os.replace,
        so an interrupted encode never leaves a truncated track behind.

        Args:
            delta: Gain in dB
            path: MP3 file

        Raises:
            NormalizationError: If decoding, encoding or the swap fails
        """
        path = Path(path)
        normalized = path.with_name(f".{path.name.lstrip('.')}.norm.mp3")

        try:
            audio = AudioSegment.from_file(str(path))
            audio.apply_gain(delta).export(str(normalized), format='mp3', bitrate=f"{self.bitrate}k")
            os.replace(normalized, path)
        except (CouldntDecodeError, CouldntEncodeError, OSError, IndexError) as e:
            if normalized.exists():
                normalized.unlink()
            raise NormalizationError(f"Cannot normalize {path.name}: {e}", {'path': str(path)}) from e

        self.logger.debug(f"Applied {delta:+.2f} dB to {path.name}")
