"""LogVision - regex signal extraction from timestamped logs with adaptive display."""

__version__ = "0.1.0"
