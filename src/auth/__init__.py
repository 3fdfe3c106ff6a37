"""Authentication and session tokens."""
