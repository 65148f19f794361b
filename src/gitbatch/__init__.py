"""Size-aware bulk commits to GitHub with client-side rate limiting."""

__version__ = "0.1.0"
