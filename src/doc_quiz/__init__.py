"""Incremental document-to-quiz engine."""
