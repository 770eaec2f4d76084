"""
OCR service client.

Provides:
- Image → transcript (full_text + blocks)
- Retry/backoff for transient network failures
"""

from .client import OcrAPIError, OcrClient, OcrConnectionError, OcrError, OcrResult

__all__ = [
    "OcrClient",
    "OcrResult",
    "OcrError",
    "OcrAPIError",
    "OcrConnectionError",
]
