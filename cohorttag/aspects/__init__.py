"""Aspect contract and the extraction driver."""

from .base import Aspect, ExtractionResult, extract_fingerprints

__all__ = ["Aspect", "ExtractionResult", "extract_fingerprints"]
