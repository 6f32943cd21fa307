"""Geocoding, device location, map bounds, and directions links."""
