"""Grammar scanning, candidate scoring and the extraction pipeline."""
