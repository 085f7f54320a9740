"""Unit test fixtures for isolated, fast test execution.

Unit tests never touch PortAudio or real sound files:
- ``patch_sounddevice`` / ``patch_soundfile`` replace the modules in
  ``sys.modules`` so lazy imports inside the services pick up mocks
- ``isolated_env`` runs a test inside a scratch working directory
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import MagicMock, patch

import numpy as np
import pytest


# =============================================================================
# Isolated Environment Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run the test with a clean working directory and no config override.

    Example:
        def test_reads_default_config(isolated_env):
            (isolated_env / "config.txt").write_text("min_db = -50")
    """
    work_dir = tmp_path / "work"
    work_dir.mkdir()

    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("WAYTOOLOUD_CONFIG", raising=False)

    original_cwd = os.getcwd()
    os.chdir(work_dir)

    yield work_dir

    os.chdir(original_cwd)


# =============================================================================
# Patch Context Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def patch_sounddevice() -> Generator[MagicMock, None, None]:
    """Patch the sounddevice module for the duration of the test.

    Example:
        def test_no_audio_access(patch_sounddevice):
            patch_sounddevice.query_devices.return_value = []
    """
    with patch.dict(sys.modules, {"sounddevice": MagicMock()}) as modules:
        mock_sd = modules["sounddevice"]
        mock_sd.query_devices.return_value = []
        mock_sd.default = (0, 0)
        yield mock_sd


@pytest.fixture(scope="function")
def patch_soundfile() -> Generator[MagicMock, None, None]:
    """Patch the soundfile module; ``read`` returns a short stereo clip."""
    with patch.dict(sys.modules, {"soundfile": MagicMock()}) as modules:
        mock_sf = modules["soundfile"]
        mock_sf.read.return_value = (np.zeros((480, 2), dtype=np.float32), 48_000)
        yield mock_sf


# =============================================================================
# Signal Generation Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def sine_block() -> Callable[..., np.ndarray]:
    """Factory for mono float32 sine blocks.

    Example:
        def test_tone(sine_block):
            block = sine_block(frequency=3000.0, amplitude=0.5)
    """
    def generate(
        frequency: float = 1000.0,
        amplitude: float = 0.5,
        sample_rate: float = 48_000.0,
        frames: int = 1024,
    ) -> np.ndarray:
        t = np.arange(frames, dtype=np.float64) / sample_rate
        return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)

    return generate
