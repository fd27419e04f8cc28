"""Extraction pipeline orchestration."""
