"""Async client for the OCR.space recognition API.

The document is first sent as a multipart upload. If that attempt fails
for any reason the same payload is sent once more as a base64 data URI
in a form-urlencoded body, which the service accepts for files that the
multipart parser rejects. Only the outcome of the second attempt is
surfaced to the caller.
"""

import base64
from pathlib import Path
from typing import Any

import httpx

from docintake.exceptions import DocIntakeError, OcrServiceError, TransportError
from docintake.utils.config import OCRServiceConfig
from docintake.utils.logger import get_logger

logger = get_logger(__name__)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def parse_ocr_response(payload: Any) -> str:
    """Pull the recognized text out of an OCR.space JSON envelope.

    Args:
        payload: Decoded JSON body.

    Returns:
        Text of the first parsed result, or ``""`` when there is none.

    Raises:
        OcrServiceError: If the service flagged the request as failed or
            the envelope is not an object.
    """
    if not isinstance(payload, dict):
        raise OcrServiceError("OCR service returned an unexpected response")

    if payload.get("IsErroredOnProcessing"):
        messages = payload.get("ErrorMessage") or []
        if isinstance(messages, str):
            messages = [messages]
        raise OcrServiceError(", ".join(str(m) for m in messages) or "OCR processing failed")

    results = payload.get("ParsedResults") or []
    if not results:
        return ""
    return results[0].get("ParsedText") or ""


class OcrSpaceClient:
    """Submits documents to OCR.space and returns plain text.

    Args:
        config: Endpoint, language, and request hints.
        api_key: Key sent with every request.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        config: OCRServiceConfig,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.api_key = api_key
        self._transport = transport

    def _options(self) -> dict[str, str]:
        return {
            "language": self.config.language,
            "isTable": _flag(self.config.detect_tables),
            "OCREngine": str(self.config.engine),
            "scale": _flag(self.config.scale),
            "detectOrientation": _flag(self.config.detect_orientation),
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout_seconds, transport=self._transport
        )

    async def _post(self, client: httpx.AsyncClient, **kwargs: Any) -> str:
        try:
            response = await client.post(self.config.endpoint, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"OCR service timed out after {self.config.timeout_seconds:.0f}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"OCR service returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"OCR request failed: {exc}") from exc
        except ValueError as exc:
            raise OcrServiceError("OCR service returned invalid JSON") from exc
        return parse_ocr_response(payload)

    async def _submit_multipart(
        self, client: httpx.AsyncClient, filename: str, content: bytes, mime_type: str
    ) -> str:
        return await self._post(
            client,
            headers={"apikey": self.api_key},
            data=self._options(),
            files={"file": (filename, content, mime_type)},
        )

    async def _submit_base64(
        self, client: httpx.AsyncClient, content: bytes, mime_type: str
    ) -> str:
        encoded = base64.b64encode(content).decode("ascii")
        form = {
            "apikey": self.api_key,
            "base64Image": f"data:{mime_type};base64,{encoded}",
            **self._options(),
        }
        return await self._post(client, data=form)

    async def recognize(self, path: Path, mime_type: str) -> str:
        """Recognize the text of a PDF or image file.

        Args:
            path: File to submit.
            mime_type: Declared type of the file, sent as-is to the service.

        Returns:
            Recognized text, possibly empty.

        Raises:
            TransportError: On network failure or timeout.
            OcrServiceError: If the service reported a processing error.
        """
        content = path.read_bytes()

        async with self._client() as client:
            try:
                text = await self._submit_multipart(client, path.name, content, mime_type)
            except DocIntakeError as exc:
                logger.warning(
                    "Multipart OCR submission failed (%s), retrying as base64",
                    exc.message,
                )
                text = await self._submit_base64(client, content, mime_type)

        logger.info("OCR.space returned %d characters for %s", len(text), path.name)
        return text
