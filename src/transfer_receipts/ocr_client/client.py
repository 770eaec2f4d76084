"""
OCR service client.

The OCR engine runs out of process. It receives a receipt image and
returns one best-effort transcript plus the text blocks it found:

    POST {base_url}/api/ocr/   (multipart field "image")
    -> {"full_text": "...", "blocks": ["...", ...]}
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


class OcrError(Exception):
    """Base exception for OCR client errors."""
    pass


class OcrAPIError(OcrError):
    """OCR service returned an error response."""
    def __init__(self, status_code: int, message: str, response_body: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"OCR API error {status_code}: {message}")


class OcrConnectionError(OcrError):
    """Failed to connect to the OCR service."""
    pass


@dataclass
class OcrResult:
    """Transcript of one image. Parsing only uses full_text."""
    full_text: str
    blocks: list[str] = field(default_factory=list)

    @classmethod
    def from_api_response(cls, data: dict) -> "OcrResult":
        blocks = data.get("blocks") or []
        text = data.get("full_text")
        if text is None:
            text = data.get("text") or "\n".join(blocks)
        return cls(full_text=text, blocks=[str(b) for b in blocks])


class OcrClient:
    """
    Client for the OCR service.
    
    Features:
    - Recognize text in an image (bytes or file path)
    - Connection check
    - Automatic retry with backoff
    """
    
    DEFAULT_TIMEOUT = 60
    
    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
    ):
        """
        Initialize OCR client.
        
        Args:
            base_url: OCR service URL (e.g., "http://localhost:8500")
            token: Optional API token
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            backoff_factor: Backoff factor for retries
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Token {token}"
        
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
    
    def _request(
        self,
        method: str,
        endpoint: str,
        files: Optional[dict] = None,
    ) -> requests.Response:
        """Make an API request with error handling."""
        url = f"{self.base_url}{endpoint}"
        
        try:
            response = self.session.request(
                method=method,
                url=url,
                files=files,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise OcrConnectionError(f"Failed to connect to OCR service at {self.base_url}: {e}")
        except requests.exceptions.Timeout as e:
            raise OcrConnectionError(f"Request to OCR service timed out: {e}")
        except requests.exceptions.RequestException as e:
            raise OcrError(f"Request failed: {e}")
        
        if not response.ok:
            raise OcrAPIError(
                status_code=response.status_code,
                message=response.reason,
                response_body=response.text,
            )
        
        return response
    
    def test_connection(self) -> bool:
        """Test connection to the OCR service."""
        try:
            self._request("GET", "/api/")
            return True
        except OcrError:
            return False
    
    def recognize(self, image: bytes | Path | str, filename: Optional[str] = None) -> OcrResult:
        """
        Recognize the text of a receipt image.
        
        Args:
            image: Image bytes or path to an image file
            filename: Name sent with the upload (defaults to the file name)
        
        Returns:
            OcrResult with full_text and blocks
        """
        if isinstance(image, (str, Path)):
            path = Path(image)
            content = path.read_bytes()
            filename = filename or path.name
        else:
            content = image
        
        logger.debug(f"Sending {len(content)} bytes to OCR service")
        response = self._request(
            "POST",
            "/api/ocr/",
            files={"image": (filename or "receipt.jpg", content)},
        )
        
        try:
            data = response.json()
        except ValueError as e:
            raise OcrError(f"OCR service returned invalid JSON: {e}") from e
        
        return OcrResult.from_api_response(data)
