"""HTTP layer for the spread service."""
