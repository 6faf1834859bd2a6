"""HTTP API for the wishlist cache service."""
