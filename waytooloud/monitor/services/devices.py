"""Input-device enumeration through sounddevice."""

from __future__ import annotations

from typing import Any, Iterable

from ..domain import AudioDeviceInfo


def input_devices_from(entries: Iterable[Any]) -> list[AudioDeviceInfo]:
    devices: list[AudioDeviceInfo] = []
    for index, entry in enumerate(entries):
        channels = int(entry.get("max_input_channels", 0) or 0)
        if channels <= 0:
            continue
        devices.append(
            AudioDeviceInfo(
                device_id=int(entry.get("index", index)),
                name=str(entry.get("name", f"Device {index}")),
                channels=channels,
                sample_rate=float(entry.get("default_samplerate", 0.0) or 0.0),
            )
        )
    return devices


def list_input_devices() -> list[AudioDeviceInfo]:
    """Return every device exposing at least one input channel."""
    import sounddevice as sd

    return input_devices_from(sd.query_devices())


__all__ = ["input_devices_from", "list_input_devices"]
