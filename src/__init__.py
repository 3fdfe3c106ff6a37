"""Agora community forum API."""
