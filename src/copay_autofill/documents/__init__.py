"""Eligibility document download and PDF text decoding."""
