"""OSS Wishlist snapshot cache service."""

__version__ = "0.1.0"
