"""
Audio - Keep narration in step with the slide on screen.

Provides:
- AudioCatalog: audio index -> file path/URL resolution
- AudioBackend: transport port, with WaveFileBackend for local WAV files
- AudioSynchronizer: one audio source per slide, stale-load guard,
  "slide consumed" signal on natural completion
"""

import logging
import wave
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Protocol

from .flattener import FlatEntry, FlatSequence

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".wav", ".mp3", ".ogg", ".m4a")


# -----------------------------------------------------------------------------
# Address resolution
# -----------------------------------------------------------------------------

class AudioCatalog:
    """
    Resolve audio indices against the files of one course's audio directory.

    Files are addressed by sorted filename order (01.wav, 02.wav, ...).
    Unknown indices resolve to an empty string, meaning "no audio".
    """

    def __init__(self, audio_dir: Path, extensions: tuple[str, ...] = AUDIO_EXTENSIONS):
        self.audio_dir = Path(audio_dir)
        if self.audio_dir.exists():
            self.files = sorted(
                p for p in self.audio_dir.iterdir()
                if p.is_file() and p.suffix.lower() in extensions
            )
        else:
            self.files = []

    @classmethod
    def for_course(cls, audio_root: Path, audio_base_path: str) -> "AudioCatalog":
        """Catalog for a course's audio_base_path below the audio root."""
        return cls(Path(audio_root) / audio_base_path.strip("/"))

    def __len__(self) -> int:
        return len(self.files)

    def get_audio_url(self, audio_index: int) -> str:
        if 0 <= audio_index < len(self.files):
            return str(self.files[audio_index])
        return ""

    def has_audio(self) -> bool:
        return len(self.files) > 0


# -----------------------------------------------------------------------------
# Backend port
# -----------------------------------------------------------------------------

@dataclass
class AudioCallbacks:
    """Callbacks a backend uses to report on one load."""
    on_ready: Callable[[float], None]          # duration in seconds
    on_error: Callable[[Exception], None]
    on_progress: Callable[[float], None]       # position in seconds
    on_ended: Callable[[], None]


class AudioBackend(Protocol):
    def load(self, url: str, callbacks: AudioCallbacks) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def seek(self, position: float) -> None:
        ...

    def stop(self) -> None:
        ...


class WaveFileBackend:
    """
    Headless transport for local WAV narration.

    Reads duration with the wave module and reports it right away. Playback
    itself happens in the presentation layer, which reports position and the
    end of the narration through update_position() and end().
    """

    def __init__(self):
        self.callbacks: Optional[AudioCallbacks] = None
        self.url = ""
        self.is_playing = False

    def load(self, url: str, callbacks: AudioCallbacks) -> None:
        self.callbacks = callbacks
        self.url = url
        self.is_playing = False
        path = Path(url[len("file://"):] if url.startswith("file://") else url)
        try:
            with wave.open(str(path), "rb") as wav:
                rate = wav.getframerate()
                duration = wav.getnframes() / rate if rate else 0.0
        except (wave.Error, OSError, EOFError) as e:
            callbacks.on_error(e)
            return
        callbacks.on_ready(duration)

    def play(self) -> None:
        self.is_playing = True

    def pause(self) -> None:
        self.is_playing = False

    def seek(self, position: float) -> None:
        if self.callbacks:
            self.callbacks.on_progress(position)

    def stop(self) -> None:
        self.is_playing = False
        self.callbacks = None
        self.url = ""

    def update_position(self, position: float) -> None:
        if self.callbacks:
            self.callbacks.on_progress(position)

    def end(self) -> None:
        self.is_playing = False
        if self.callbacks:
            self.callbacks.on_ended()


# -----------------------------------------------------------------------------
# Synchronizer
# -----------------------------------------------------------------------------

@dataclass
class TransportState:
    """Transport telemetry for the bound slide."""
    global_index: Optional[int] = None
    audio_index: Optional[int] = None
    url: str = ""
    is_playing: bool = False
    is_loaded: bool = False
    position: float = 0.0
    duration: float = 0.0
    error: Optional[str] = None


class AudioSynchronizer:
    """
    Bind the current slide to its narration.

    Every bind() starts a new generation. Backend callbacks carry the
    generation they were issued for and are dropped once it is stale, so a
    slow load for an old slide can never overwrite telemetry of the new one.
    Failures are logged and leave the transport paused at zero duration.
    """

    def __init__(
        self,
        course: FlatSequence,
        resolver: Callable[[int], str],
        backend: AudioBackend,
        on_consumed: Optional[Callable[[int], None]] = None,
    ):
        """
        Initialize synchronizer.

        Args:
            course: Flattened course
            resolver: audio index -> URL, "" when there is no audio
            backend: Transport implementation
            on_consumed: Called with the global index when narration ends naturally
        """
        self.course = course
        self.resolver = resolver
        self.backend = backend
        self.on_consumed = on_consumed
        self.transport = TransportState()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def resolve_url(self, entry: FlatEntry) -> str:
        """Slide-level audio_url wins over the resolver."""
        if entry.slide.audio_url:
            return entry.slide.audio_url
        try:
            return self.resolver(entry.audio_index) or ""
        except Exception:
            logger.warning(f"Audio resolver failed for index {entry.audio_index}", exc_info=True)
            return ""

    def bind(self, global_index: Optional[int]) -> None:
        """Swap the audio source to the given slide (None unloads)."""
        if global_index is not None and global_index == self.transport.global_index:
            return

        self._generation += 1
        self._stop_backend()

        entry = self.course.entry_at(global_index) if global_index is not None else None
        if entry is None:
            self.transport = TransportState()
            return

        url = self.resolve_url(entry)
        self.transport = TransportState(
            global_index=entry.global_index,
            audio_index=entry.audio_index,
            url=url,
        )
        if not url:
            logger.debug(f"No audio for slide {entry.global_index} (audio index {entry.audio_index})")
            return

        generation = self._generation
        callbacks = AudioCallbacks(
            on_ready=partial(self._on_ready, generation),
            on_error=partial(self._on_error, generation),
            on_progress=partial(self._on_progress, generation),
            on_ended=partial(self._on_ended, generation),
        )
        try:
            self.backend.load(url, callbacks)
        except Exception as e:
            self._on_error(generation, e)

    # -------------------------------------------------------------------------
    # Transport controls
    # -------------------------------------------------------------------------

    def play(self) -> bool:
        """Start playback. Returns False when nothing playable is loaded."""
        if not self.transport.is_loaded:
            return False
        try:
            self.backend.play()
        except Exception as e:
            self._fail(e)
            return False
        self.transport.is_playing = True
        return True

    def pause(self) -> None:
        if not self.transport.is_playing:
            return
        try:
            self.backend.pause()
        except Exception:
            logger.warning("Audio backend failed to pause", exc_info=True)
        self.transport.is_playing = False

    def toggle(self) -> bool:
        """Play if paused, pause if playing. Returns the new playing flag."""
        if self.transport.is_playing:
            self.pause()
        else:
            self.play()
        return self.transport.is_playing

    def seek(self, position: float) -> None:
        if not self.transport.is_loaded:
            return
        position = max(0.0, min(position, self.transport.duration))
        try:
            self.backend.seek(position)
        except Exception:
            logger.warning("Audio backend failed to seek", exc_info=True)
            return
        self.transport.position = position

    # -------------------------------------------------------------------------
    # Backend callbacks
    # -------------------------------------------------------------------------

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug(f"Dropping audio callback from stale generation {generation}")
            return True
        return False

    def _on_ready(self, generation: int, duration: float):
        if self._is_stale(generation):
            return
        self.transport.duration = max(0.0, float(duration or 0.0))
        self.transport.is_loaded = True

    def _on_error(self, generation: int, error: Exception):
        if self._is_stale(generation):
            return
        self._fail(error)

    def _on_progress(self, generation: int, position: float):
        if self._is_stale(generation):
            return
        self.transport.position = max(0.0, float(position))

    def _on_ended(self, generation: int):
        if self._is_stale(generation):
            return
        self.transport.is_playing = False
        self.transport.position = self.transport.duration
        index = self.transport.global_index
        if self.on_consumed and index is not None:
            self.on_consumed(index)

    def _fail(self, error: Exception):
        logger.warning(f"Audio unavailable for {self.transport.url or 'slide'}: {error}")
        self.transport.is_playing = False
        self.transport.is_loaded = False
        self.transport.position = 0.0
        self.transport.duration = 0.0
        self.transport.error = str(error)

    def _stop_backend(self):
        try:
            self.backend.stop()
        except Exception:
            logger.warning("Audio backend failed to stop", exc_info=True)
