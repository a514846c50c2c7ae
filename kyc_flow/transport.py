import logging
from typing import Any, Dict, Optional, Tuple

import requests

from config import settings, UPLOAD_FILENAMES
from .errors import ImageTooLarge, ServerError, TransportFailure, UnexpectedResponseShape

logger = logging.getLogger(__name__)

# (filename, content, mime) as accepted by requests' ``files=``
FilePart = Tuple[str, bytes, str]


def upload_part(image, name: str) -> FilePart:
    """Multipart file tuple for a CapturedImage, named after its MIME type"""
    filename = UPLOAD_FILENAMES.get(image.mime.lower(), "{name}.jpg").format(name=name)
    return (filename, image.data, image.mime)


def extract_server_message(response: requests.Response) -> Optional[str]:
    """Pull a human-readable message out of an error body, if there is one"""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    for key in ("error", "message", "detail"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class OracleTransport:
    """
    Multipart POSTs to the verification backend.

    One attempt per call. Connection problems and timeouts raise
    TransportFailure, a 413 raises ImageTooLarge, any other non-2xx raises
    ServerError and a body that is not a JSON object raises
    UnexpectedResponseShape.
    """

    def __init__(self,
                 base_url: Optional[str] = None,
                 api_token: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[Tuple[float, float]] = None):
        self.base_url = (base_url or settings.ORACLE_BASE_URL).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.ORACLE_API_TOKEN
        self.session = session or requests.Session()
        self.timeout = timeout or (settings.CONNECT_TIMEOUT, settings.READ_TIMEOUT)

    def url_for(self, path: str) -> str:
        # Avoid /api/api/... when the base URL already ends in /api
        if self.base_url.endswith("/api") and path.startswith("/api/"):
            path = path[len("/api"):]
        return f"{self.base_url}{path}"

    def post_multipart(self,
                       path: str,
                       files: Dict[str, FilePart],
                       data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        url = self.url_for(path)
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        try:
            response = self.session.post(
                url, files=files, data=data or {}, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as e:
            logger.warning("POST %s timed out: %s", path, e)
            raise TransportFailure(f"Request timed out: {e}") from e
        except requests.RequestException as e:
            logger.warning("POST %s failed: %s", path, e)
            raise TransportFailure(f"Request failed: {e}") from e

        status = response.status_code
        logger.info("POST %s -> %s", path, status)

        if status == 413:
            raise ImageTooLarge(
                extract_server_message(response) or "Payload too large", status_code=413
            )
        if not 200 <= status < 300:
            raise ServerError(status, extract_server_message(response))

        try:
            body = response.json()
        except ValueError as e:
            raise UnexpectedResponseShape("Response body is not JSON", status_code=status) from e
        if not isinstance(body, dict):
            raise UnexpectedResponseShape("Response body is not a JSON object", status_code=status)
        return body
