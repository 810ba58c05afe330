"""Shared test fixtures and stubs for imgreplace-claude tests.

The stubs stand in for the three remote collaborators (content store,
image hosts, Claude) so that pipeline control flow can be tested
deterministically.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from imgreplace_claude.articles import Article, NotFoundError, PersistError
from imgreplace_claude.fetcher import ImageAsset, RetrievalError


def img(src: str, **attrs: str) -> str:
    """Build an ``<img>`` tag with *src* after any extra attributes."""
    extra = "".join(f' {k.replace("_", "-")}="{v}"' for k, v in attrs.items())
    return f'<img{extra} src="{src}">'


class StubFetcher:
    """Fetcher serving assets from a dict; missing references fail.

    Values may be ``bytes`` (served as ``image/png``) or an exception
    instance to raise.
    """

    def __init__(self, images: dict[str, bytes | Exception]) -> None:
        self.images = images
        self.calls: list[str] = []

    def fetch(self, reference: str) -> ImageAsset:
        self.calls.append(reference)
        payload = self.images.get(reference)
        if payload is None:
            raise RetrievalError(reference, "404 Not Found", status_code=404)
        if isinstance(payload, Exception):
            raise payload
        return ImageAsset.from_bytes(payload, "image/png", reference)


class StubOracle:
    """Oracle that matches when both payloads are byte-identical."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def compare(self, a: ImageAsset, b: ImageAsset) -> bool:
        self.calls.append((a.reference, b.reference))
        return a.raw == b.raw


@dataclass
class FakeStore:
    """In-memory content store."""

    articles: dict[str, str] = field(default_factory=dict)
    fail_update: bool = False
    updates: list[tuple[str, str]] = field(default_factory=list)

    def get_article(self, article_id: str) -> Article:
        if article_id not in self.articles:
            raise NotFoundError(f"Article not found: {article_id}", status_code=404)
        return Article(id=article_id, body=self.articles[article_id])

    def update_article(self, article_id: str, body: str) -> None:
        if self.fail_update:
            raise PersistError("Failed to update article: 500 Internal Server Error")
        self.updates.append((article_id, body))
        self.articles[article_id] = body


@pytest.fixture
def oracle() -> StubOracle:
    return StubOracle()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
