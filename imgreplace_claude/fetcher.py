"""Image retrieval for comparison.

Downloads one image per call and returns it as an :class:`ImageAsset`
whose payload is base64 text, ready to embed in a Claude image block.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

import httpx

_log = logging.getLogger("fetcher")

DEFAULT_MEDIA_TYPE = "image/jpeg"
"""Media type assumed when the image host sends no ``Content-Type``."""

DEFAULT_TIMEOUT_S = 30.0
"""Default per-request timeout for image downloads."""


class RetrievalError(Exception):
    """An image could not be retrieved.

    Raised for non-success HTTP statuses and for transport failures
    (timeout, DNS, refused connection).
    """

    def __init__(
        self,
        reference: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(f"Failed to load image {reference}: {message}")
        self.reference = reference
        self.status_code = status_code


@dataclass(frozen=True)
class ImageAsset:
    """A retrieved image: base64 payload plus declared media type."""

    data: str
    """Base64-encoded image bytes."""

    media_type: str
    """Media type from the response (e.g. ``"image/png"``)."""

    reference: str
    """The reference the asset was fetched from."""

    @property
    def raw(self) -> bytes:
        """Decoded image bytes."""
        return base64.b64decode(self.data)

    @classmethod
    def from_bytes(
        cls, payload: bytes, media_type: str, reference: str,
    ) -> ImageAsset:
        """Build an asset from raw bytes."""
        return cls(
            data=base64.b64encode(payload).decode("ascii"),
            media_type=media_type,
            reference=reference,
        )

    def to_content_block(self) -> dict:
        """Render as an Anthropic base64 image content block."""
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": self.media_type,
                "data": self.data,
            },
        }


def _media_type(content_type: str | None) -> str:
    """Strip parameters from a ``Content-Type`` header value."""
    if not content_type:
        return DEFAULT_MEDIA_TYPE
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type or DEFAULT_MEDIA_TYPE


class ImageFetcher:
    """Fetch images over HTTP with a single attempt per reference.

    Usage::

        with ImageFetcher() as fetcher:
            asset = fetcher.fetch("https://example.com/a.png")
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        """Initialize the fetcher.

        Args:
            http_client: Shared ``httpx`` client.  When omitted, the fetcher
                creates (and owns) one with *timeout* and redirect following.
            timeout: Per-request timeout in seconds for an owned client.
        """
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=timeout, follow_redirects=True,
        )

    def close(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ImageFetcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self, reference: str) -> ImageAsset:
        """Download *reference* and return it as an :class:`ImageAsset`.

        Raises:
            RetrievalError: On a non-2xx status or any transport failure,
                including references that are not valid URLs.
        """
        try:
            resp = self._client.get(reference)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RetrievalError(reference, f"{type(e).__name__}: {e}") from e

        if not resp.is_success:
            raise RetrievalError(
                reference,
                f"{resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        media_type = _media_type(resp.headers.get("content-type"))
        _log.debug(
            "  Fetched %s (%s, %.1f KB)",
            reference, media_type, len(resp.content) / 1024,
        )
        return ImageAsset.from_bytes(resp.content, media_type, reference)
