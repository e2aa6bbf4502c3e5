"""Operational scripts for the forum engine."""
