"""WayTooLoud: ambient loudness monitor with time-windowed alert limits."""

__version__ = "1.0.0"
