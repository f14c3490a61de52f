"""Segment membership service: segments, user memberships and monthly change reports."""
