"""Batch loading, relationship upkeep and invariant checks."""
