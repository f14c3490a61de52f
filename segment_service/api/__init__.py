"""HTTP adapter for the segment service."""
