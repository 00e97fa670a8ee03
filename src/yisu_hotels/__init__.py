"""Hotel listing platform: search, dynamic pricing and moderation."""

__version__ = "0.1.0"
