"""Output record projection and snapshot sinks."""
