"""Minimal WAV header inspection.

Only the canonical 44-byte RIFF/WAVE header is understood.  Duration is
derived from the file size, so the computation is only meaningful for
uncompressed linear PCM, which is what the recorder writes (16 kHz, mono,
16-bit).
"""

from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import Optional

from models import AudioHeader

logger = logging.getLogger(__name__)

HEADER_SIZE = 44

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_EXTENSIBLE = 0xFFFE

# format tag, channels, sample rate, byte rate, block align, bits per sample
_FMT_STRUCT = struct.Struct("<HHIIHH")
_FMT_OFFSET = 20
_DATA_SIZE_OFFSET = 40


class WavHeaderError(ValueError):
    """Raised when a buffer is too short to hold a WAV header."""


def parse_header(data: bytes) -> AudioHeader:
    if len(data) < HEADER_SIZE:
        raise WavHeaderError(f"need {HEADER_SIZE} header bytes, got {len(data)}")
    audio_format, channels, sample_rate, byte_rate, block_align, bits = _FMT_STRUCT.unpack_from(
        data, _FMT_OFFSET
    )
    (data_size,) = struct.unpack_from("<I", data, _DATA_SIZE_OFFSET)
    return AudioHeader(
        audio_format=audio_format,
        num_channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits,
        data_byte_length=data_size,
    )


def is_linear_pcm(header: AudioHeader) -> bool:
    return header.audio_format in (WAVE_FORMAT_PCM, WAVE_FORMAT_EXTENSIBLE)


def compute_duration(data: bytes) -> Optional[float]:
    """Return the playable duration in seconds, rounded to the millisecond.

    Returns ``None`` when there is no header, when the header describes a
    non-PCM encoding, or when any of the rate/width/channel fields is zero.
    """
    try:
        header = parse_header(data)
    except WavHeaderError:
        return None
    if not is_linear_pcm(header):
        return None
    frame_bytes = header.sample_rate * header.bytes_per_sample * header.num_channels
    if frame_bytes == 0:
        return None
    seconds = (len(data) - HEADER_SIZE) / frame_bytes
    return int(seconds * 1000 + 0.5) / 1000


def read_duration(path: Path) -> Optional[float]:
    """Duration of a WAV file on disk, or ``None`` if it cannot be read."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        logger.warning("cannot read recording %s: %s", path, exc)
        return None
    return compute_duration(data)


def format_duration(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 60:02d}:{total % 60:02d}"
