"""Fingerprint persistence backends."""

from .fingerprint_store import (
    ClassificationSink,
    FingerprintSource,
    FingerprintStore,
    StoreError,
    fingerprint_from_dict,
    fingerprint_to_dict,
    iter_cohort,
)

__all__ = [
    "ClassificationSink",
    "FingerprintSource",
    "FingerprintStore",
    "StoreError",
    "fingerprint_from_dict",
    "fingerprint_to_dict",
    "iter_cohort",
]
