"""Folder graph construction and path resolution."""
