"""Proximity-triggered budget reminder engine."""
