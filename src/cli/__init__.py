"""Willpower command-line interface."""
