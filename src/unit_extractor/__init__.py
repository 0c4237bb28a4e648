"""Batched, concurrent extraction of self-contained functions from repository sources."""
