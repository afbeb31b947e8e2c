"""Reload-surviving verification workflow."""
