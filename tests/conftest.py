"""Pytest configuration — adds src/ to sys.path."""

import os
import sys

# Add src/ to Python path so tests can import from mailbox_snapshot
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))
