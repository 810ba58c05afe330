"""Article content store.

:class:`ArticleStore` is the seam the orchestrator depends on.
:class:`IntercomArticleStore` implements it against the Intercom Articles
REST API using ``httpx``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

_log = logging.getLogger("articles")

INTERCOM_API_BASE = "https://api.intercom.io"
"""Base URL of the Intercom REST API."""

INTERCOM_API_VERSION = "2.11"
"""Value sent in the ``Intercom-Version`` header."""

DEFAULT_TIMEOUT_S = 30.0
"""Default per-request timeout for content store calls."""


class ArticleStoreError(Exception):
    """The content store could not serve or accept an article."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ArticleStoreError):
    """The requested article could not be retrieved.

    Raised for a missing article (``status_code`` 404) and for every other
    read failure: error status, transport error or an unreadable response.
    """


class PersistError(ArticleStoreError):
    """The content store rejected the updated article body."""


@dataclass
class Article:
    """An article as returned by the content store."""

    id: str
    body: str
    title: str = ""


@runtime_checkable
class ArticleStore(Protocol):
    """Protocol for fetching and persisting article bodies."""

    def get_article(self, article_id: str) -> Article:
        """Fetch an article.  Raises :class:`NotFoundError` when it cannot be read."""
        ...

    def update_article(self, article_id: str, body: str) -> None:
        """Replace an article's body.  Raises :class:`PersistError` on failure."""
        ...


class IntercomArticleStore:
    """Intercom Articles API client.

    Usage::

        with IntercomArticleStore(token) as store:
            article = store.get_article("4727254")
            store.update_article(article.id, article.body)
    """

    def __init__(
        self,
        access_token: str,
        http_client: httpx.Client | None = None,
        base_url: str = INTERCOM_API_BASE,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        """Initialize the store.

        Args:
            access_token: Intercom access token (INTERCOM_ACCESS_TOKEN).
            http_client: Optional shared ``httpx`` client; one is created
                (and owned) when omitted.
            base_url: API base URL.
            timeout: Per-request timeout in seconds for an owned client.
        """
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
            "Intercom-Version": INTERCOM_API_VERSION,
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the underlying client if this store created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> IntercomArticleStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _url(self, article_id: str) -> str:
        return f"{self._base_url}/articles/{article_id}"

    def get_article(self, article_id: str) -> Article:
        try:
            resp = self._client.get(self._url(article_id), headers=self._headers)
        except httpx.HTTPError as e:
            raise NotFoundError(
                f"Failed to fetch article {article_id}: {type(e).__name__}: {e}"
            ) from e

        if resp.status_code == 404:
            raise NotFoundError(
                f"Article not found: {article_id}", status_code=404,
            )
        if not resp.is_success:
            raise NotFoundError(
                f"Failed to fetch article: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise NotFoundError(
                f"Failed to fetch article {article_id}: invalid JSON response",
                status_code=resp.status_code,
            ) from e
        _log.debug("  Fetched article %s (%d chars)", article_id, len(data.get("body") or ""))
        return Article(
            id=str(data.get("id", article_id)),
            body=data.get("body") or "",
            title=data.get("title") or "",
        )

    def update_article(self, article_id: str, body: str) -> None:
        headers = {**self._headers, "Content-Type": "application/json"}
        try:
            resp = self._client.put(
                self._url(article_id), headers=headers, json={"body": body},
            )
        except httpx.HTTPError as e:
            raise PersistError(
                f"Failed to update article {article_id}: {type(e).__name__}: {e}"
            ) from e

        if not resp.is_success:
            raise PersistError(
                f"Failed to update article: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )
        _log.debug("  Updated article %s (%d chars)", article_id, len(body))
