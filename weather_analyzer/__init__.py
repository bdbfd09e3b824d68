"""
Weather Analyzer

Polls a RapidAPI current-weather endpoint on a fixed rate, stores
deduplicated observations and serves the stored history over HTTP.
"""

__version__ = "1.0.0"
