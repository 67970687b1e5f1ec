"""Fingerprint cohort classification: tags, bands and commit risk scores."""

__version__ = "0.1.0"
