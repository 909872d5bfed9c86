"""PCM codec, gapless playback scheduling and audio device adapters."""
from __future__ import annotations

import base64
import logging
import threading
from typing import Callable, Optional, Union

import numpy as np
from google.genai import types

logger = logging.getLogger(__name__)

INPUT_SAMPLE_RATE = 16000
OUTPUT_SAMPLE_RATE = 24000
CHANNELS = 1
INPUT_BUFFER_SIZE = 4096
INPUT_MIME_TYPE = f"audio/pcm;rate={INPUT_SAMPLE_RATE}"


class MicrophonePermissionError(RuntimeError):
    """Raised when the microphone cannot be opened."""


# -----------------------------------------------------------------------------
# Codec
# -----------------------------------------------------------------------------

def encode_pcm16(samples: np.ndarray) -> bytes:
    """Float samples in [-1, 1] -> 16-bit little-endian PCM bytes."""
    clipped = np.clip(np.asarray(samples, dtype=np.float32).reshape(-1), -1.0, 1.0)
    return (clipped * 32767).astype("<i2").tobytes()


def create_blob(samples: np.ndarray) -> types.Blob:
    return types.Blob(data=encode_pcm16(samples), mime_type=INPUT_MIME_TYPE)


def as_bytes(data: Union[str, bytes]) -> bytes:
    """Inline audio may arrive as raw bytes or as base64 text."""
    if isinstance(data, str):
        return base64.b64decode(data)
    return bytes(data)


def decode_pcm16(data: bytes, channels: int = CHANNELS) -> np.ndarray:
    """16-bit PCM bytes -> float32 array shaped (frames, channels)."""
    if len(data) % (2 * channels):
        raise ValueError(f"PCM payload of {len(data)} bytes is not whole {channels}-channel frames")
    pcm = np.frombuffer(data, dtype="<i2").astype(np.float32) / 32768.0
    return pcm.reshape(-1, channels)


def level_bars(samples: np.ndarray, bins: int = 32, height: int = 8) -> list[int]:
    """Frequency magnitudes of a capture block, bucketed into bar heights."""
    x = np.asarray(samples, dtype=np.float32).reshape(-1)
    if x.size == 0:
        return [0] * bins
    spectrum = np.abs(np.fft.rfft(x[:256], n=256))[1:]
    buckets = np.array_split(spectrum, bins)
    levels = np.array([b.mean() if b.size else 0.0 for b in buckets])
    peak = levels.max()
    if peak <= 0:
        return [0] * bins
    return [int(round(v / peak * height)) for v in levels]


# -----------------------------------------------------------------------------
# Playback scheduling
# -----------------------------------------------------------------------------

class PlaybackScheduler:
    """Queue decoded chunks back to back on an output clock.

    ``next_start_time`` is where the next chunk goes. A chunk never starts in
    the past, so after a gap playback resumes at the output's current time.
    """

    def __init__(self, output, sample_rate: int = OUTPUT_SAMPLE_RATE):
        self.output = output
        self.sample_rate = sample_rate
        self.next_start_time = 0.0
        self.sources: set = set()

    def schedule(self, samples: np.ndarray):
        self.next_start_time = max(self.next_start_time, self.output.current_time)
        source = self.output.play(samples, self.next_start_time)
        source.on_ended(lambda: self.sources.discard(source))
        self.next_start_time += len(samples) / self.sample_rate
        self.sources.add(source)
        return source

    def stop_all(self) -> None:
        for source in list(self.sources):
            source.stop()
        self.sources.clear()

    def interrupt(self) -> None:
        """Drop everything queued and start the clock over."""
        self.stop_all()
        self.next_start_time = 0.0


# -----------------------------------------------------------------------------
# Devices
# -----------------------------------------------------------------------------

class ScheduledSource:
    """A chunk placed on the output timeline."""

    def __init__(self, samples: np.ndarray, start_frame: int):
        self.samples = samples
        self.start_frame = start_frame
        self.stopped = False
        self._on_ended: list[Callable[[], None]] = []

    @property
    def end_frame(self) -> int:
        return self.start_frame + len(self.samples)

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._on_ended.append(callback)

    def stop(self) -> None:
        self.stopped = True

    def finish(self) -> None:
        for callback in self._on_ended:
            callback()


class SoundDeviceOutput:
    """Speaker output with a frame clock and a timeline of scheduled chunks.

    The stream callback mixes every chunk overlapping the block being played
    and advances the clock; chunks that have fully played are retired.
    """

    def __init__(self, sample_rate: int = OUTPUT_SAMPLE_RATE, channels: int = CHANNELS):
        self.sample_rate = sample_rate
        self.channels = channels
        self._frame = 0
        self._timeline: list[ScheduledSource] = []
        self._lock = threading.Lock()
        self._stream = None

    @property
    def current_time(self) -> float:
        return self._frame / self.sample_rate

    def start(self) -> None:
        import sounddevice as sd
        self._stream = sd.OutputStream(
            samplerate=self.sample_rate, channels=self.channels, dtype="float32", callback=self._callback,
        )
        self._stream.start()

    def play(self, samples: np.ndarray, start_time: float) -> ScheduledSource:
        source = ScheduledSource(samples.reshape(-1, self.channels), int(round(start_time * self.sample_rate)))
        with self._lock:
            self._timeline.append(source)
        return source

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("Output stream status: %s", status)
        outdata.fill(0)
        start, end = self._frame, self._frame + frames
        finished = []
        with self._lock:
            for source in self._timeline:
                if source.stopped or source.end_frame <= start:
                    finished.append(source)
                    continue
                lo = max(start, source.start_frame)
                hi = min(end, source.end_frame)
                if lo < hi:
                    outdata[lo - start:hi - start] += source.samples[lo - source.start_frame:hi - source.start_frame]
            for source in finished:
                self._timeline.remove(source)
        self._frame = end
        for source in finished:
            source.finish()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        with self._lock:
            self._timeline.clear()


class SoundDeviceMicrophone:
    """Microphone capture in fixed-size mono blocks at the input rate."""

    def __init__(self, sample_rate: int = INPUT_SAMPLE_RATE, block_size: int = INPUT_BUFFER_SIZE):
        self.sample_rate = sample_rate
        self.block_size = block_size
        self._stream = None

    def start(self, on_frame: Callable[[np.ndarray], None]) -> None:
        import sounddevice as sd

        def callback(indata, frames, time_info, status):
            if status:
                logger.debug("Input stream status: %s", status)
            on_frame(indata[:, 0].copy())

        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate, channels=CHANNELS, blocksize=self.block_size,
                dtype="float32", callback=callback,
            )
            self._stream.start()
        except sd.PortAudioError as e:
            self._stream = None
            raise MicrophonePermissionError(str(e)) from e

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
