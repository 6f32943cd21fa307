"""greenmap — location-tagged places and events on a bounded map."""

__version__ = "0.1.0"
