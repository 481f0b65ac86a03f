"""Snippet storage and index construction."""
