"""Profiles, daemon messages, clients and audio-graph bookkeeping for a virtual audio mixer."""

__version__ = "0.1.0"