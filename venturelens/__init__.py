"""VentureLens: retrieval and extraction pipeline for startup-funding intelligence."""

__version__ = "0.1.0"
