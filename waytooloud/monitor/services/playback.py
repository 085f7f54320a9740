"""Alert-sound playback on worker threads.

Each request decodes the file with soundfile and writes it to its own
sounddevice output stream, so alerts for different limits may overlap. The
completion callback runs exactly once per request, with ``None`` on success
or the :class:`PlaybackError` that ended playback.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable

import numpy as np

from waytooloud.core.logging_utils import ensure_structured_logger

from ..domain import PlaybackError

PlaybackCallback = Callable[[BaseException | None], None]
SoundReader = Callable[[Path], "tuple[np.ndarray, int]"]
OutputStreamFactory = Callable[..., Any]


def soundfile_reader(path: Path) -> tuple[np.ndarray, int]:
    import soundfile as sf

    data, rate = sf.read(str(path), dtype="float32", always_2d=True)
    return data, int(rate)


def sounddevice_output_stream(**kwargs: Any) -> Any:
    import sounddevice as sd

    return sd.OutputStream(**kwargs)


class SoundPlayer:
    """Fire-and-forget player returning a :class:`Future` per request."""

    def __init__(
        self,
        sounds_dir: Path | None = None,
        logger: logging.Logger | None = None,
        *,
        output_device: int | str | None = None,
        max_workers: int = 4,
        reader: SoundReader | None = None,
        stream_factory: OutputStreamFactory | None = None,
    ) -> None:
        base_logger = ensure_structured_logger(logger, fallback_name="Monitor")
        self.logger = base_logger.getChild("SoundPlayer")
        self.sounds_dir = Path(sounds_dir) if sounds_dir is not None else None
        self.output_device = output_device
        self._reader = reader or soundfile_reader
        self._stream_factory = stream_factory or sounddevice_output_stream
        self._executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="AlertPlayback")
        self._closed = False

    def resolve(self, sound_file: str | Path) -> Path:
        """Relative names live in ``sounds_dir``; absolute paths are used as-is."""
        path = Path(sound_file).expanduser()
        if path.is_absolute() or self.sounds_dir is None:
            return path
        return self.sounds_dir / path

    def play(self, sound_file: str | Path, on_finished: PlaybackCallback | None = None) -> Future:
        path = self.resolve(sound_file)
        try:
            if self._closed:
                raise RuntimeError("player is closed")
            future = self._executor.submit(self._play_blocking, path)
        except RuntimeError as exc:
            future = Future()
            future.set_exception(PlaybackError(f"Cannot schedule {path.name}: {exc}"))

        if on_finished is not None:
            future.add_done_callback(lambda done: self._notify(done, on_finished))
        return future

    def close(self, *, wait: bool = False) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=True)

    # ------------------------------------------------------------------
    # Internal helpers

    def _play_blocking(self, path: Path) -> None:
        if not path.is_file():
            raise PlaybackError(f"Sound file not found: {path}")
        try:
            data, rate = self._reader(path)
        except Exception as exc:
            raise PlaybackError(f"Cannot decode {path.name}: {exc}") from exc
        if data.ndim == 1:
            data = data.reshape(-1, 1)
        self.logger.debug("Playing %s (%d frames @ %d Hz)", path.name, data.shape[0], rate)
        try:
            with self._stream_factory(
                samplerate=rate,
                channels=data.shape[1],
                dtype="float32",
                device=self.output_device,
            ) as stream:
                stream.write(np.ascontiguousarray(data, dtype=np.float32))
        except Exception as exc:
            raise PlaybackError(f"Playback failed for {path.name}: {exc}") from exc

    def _notify(self, future: Future, on_finished: PlaybackCallback) -> None:
        if future.cancelled():
            error: BaseException | None = PlaybackError("playback cancelled")
        else:
            error = future.exception()
        try:
            on_finished(error)
        except Exception:
            self.logger.exception("Playback completion callback failed")


__all__ = ["SoundPlayer", "soundfile_reader", "sounddevice_output_stream"]
