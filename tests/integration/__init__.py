"""Integration tests: concurrent callers and end-to-end scenarios."""
