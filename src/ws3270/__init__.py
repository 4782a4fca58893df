"""ws3270 — display-session engine for a detachable 3270 terminal."""

__version__ = "0.1.0"
