"""CourseDeck - narrated slide course player with quiz gating and resumable progress."""

__version__ = "0.1.0"
