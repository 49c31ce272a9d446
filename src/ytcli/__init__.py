"""yt — command-line client for the YouTrack REST API."""

__version__ = "0.1.0"
