"""Resumable score/time histograms for Steam Community leaderboards."""

__version__ = "0.1.0"
