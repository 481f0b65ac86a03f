"""HTTP API for SnipFinder."""
