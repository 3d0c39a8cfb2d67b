"""Game cloud integration toolkit: secret caching, service clients and player state sync."""

__version__ = "0.1.0"
