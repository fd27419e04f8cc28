"""Lazy enumeration of paginated remote collections."""
