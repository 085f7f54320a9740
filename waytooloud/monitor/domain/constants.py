"""Constants for the monitor module."""

AUDIO_CHANNELS_MONO = 1

# Frequency-analysis context
FFT_SIZE = 256
SMOOTHING_TIME_CONSTANT = 0.8
ANALYSER_MIN_DECIBELS = -100.0
ANALYSER_MAX_DECIBELS = -30.0
BYTE_MAX = 255
FALLBACK_SAMPLE_RATE = 44_100

# Sensitivity mapping (dB relative to full scale)
DEFAULT_MIN_DB = -60.0
DEFAULT_MAX_DB = 0.0
MIN_DB_BOUNDS = (-100.0, -30.0)
MAX_DB_BOUNDS = (-40.0, 0.0)
RMS_FLOOR = 1e-6
LEVEL_MIN = 0.0
LEVEL_MAX = 100.0

# Peak tracking
PEAK_WINDOW_SECONDS = 20.0
PEAK_CHANGE_THRESHOLD = 0.5

# Limit evaluation
LIMIT_COOLDOWN_SECONDS = 2.0
WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
