"""
WAV container helpers.

Captured PCM frames are stored in notes as WAV bytes; no compression codec
is involved.
"""
import io
import wave
from typing import Tuple

import numpy as np

SAMPLE_WIDTHS = {2: np.int16, 4: np.int32}


def encode_wav(frames: np.ndarray, sample_rate: int) -> bytes:
    """
    Wrap PCM frames in a WAV container.

    Args:
        frames: int16 or int32 samples, shape (n_frames,) or (n_frames, channels)
        sample_rate: Sample rate in Hz

    Returns:
        WAV file bytes
    """
    if frames.ndim == 1:
        frames = frames.reshape(-1, 1)
    width = frames.dtype.itemsize
    if frames.dtype.kind != "i" or width not in SAMPLE_WIDTHS:
        raise ValueError(f"Unsupported sample format: {frames.dtype}")

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(frames.shape[1])
        wav.setsampwidth(width)
        wav.setframerate(sample_rate)
        # WAV samples are little-endian
        wav.writeframes(np.ascontiguousarray(frames, dtype=f"<i{width}").tobytes())
    return buffer.getvalue()


def decode_wav(data: bytes) -> Tuple[np.ndarray, int]:
    """
    Read PCM frames out of WAV bytes.

    Returns:
        (frames with shape (n_frames, channels), sample_rate)

    Raises:
        ValueError: If data is not a supported WAV file
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            sample_rate = wav.getframerate()
            raw = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError) as e:
        raise ValueError(f"Invalid WAV data: {e}") from e

    if width not in SAMPLE_WIDTHS:
        raise ValueError(f"Unsupported WAV sample width: {width} bytes")

    samples = np.frombuffer(raw, dtype=f"<i{width}").astype(SAMPLE_WIDTHS[width])
    return samples.reshape(-1, channels), sample_rate


def duration_seconds(data: bytes) -> float:
    """Length of WAV audio in seconds."""
    frames, sample_rate = decode_wav(data)
    return len(frames) / sample_rate
