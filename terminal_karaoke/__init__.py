"""Terminal karaoke: lyrics highlighted in time with a pausable playback clock."""

__version__ = "0.1.0"
