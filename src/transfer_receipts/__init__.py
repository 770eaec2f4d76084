"""
Bank transfer receipts → structured, deduplicated transfer records.

Turns noisy OCR transcripts of photographed or scanned transfer receipts
into fixed-schema records with per-field confidence, and stores them with
deterministic duplicate detection.
"""

__version__ = "0.1.0"
