"""Hardware-free stand-ins for audio streams and alert playback."""
