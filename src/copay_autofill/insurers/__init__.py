"""Insurer detection and per-insurer extraction rules."""
