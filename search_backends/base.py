"""
Abstract base for product search backends.
Every backend returns the same ProductMatch list, so ProductSearchClient
doesn't care how the matches were found.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import config


@dataclass(frozen=True)
class ProductMatch:
    image_url: str      # reference image resource name, "" for placeholders
    title: str
    score: str          # similarity score as text; the subtitle line for placeholders


def placeholder_matches(count: int = config.PLACEHOLDER_COUNT) -> list[ProductMatch]:
    """Stand-in results shown whenever a real search could not be completed."""
    return [
        ProductMatch(image_url="", title=f"Product title {i}", score=f"Product subtitle {i}")
        for i in range(count)
    ]


# ── Errors ────────────────────────────────────────────────────────────────────

class ProductSearchError(Exception):
    """Base class for everything that can go wrong during a product search."""


class MissingImageDataError(ProductSearchError):
    """The detected object carries no image bytes."""


class RequestConstructionError(ProductSearchError):
    """Building the annotate request failed."""


class TransportError(ProductSearchError, RuntimeError):
    """The HTTP call failed: network, auth, quota or server error."""


class ResponseParseError(ProductSearchError, ValueError):
    """A response arrived but did not have the expected shape."""


class SearchClientClosedError(ProductSearchError, RuntimeError):
    """search() was called after shutdown()."""


class SearchBackend(ABC):
    """All backends must implement this interface."""

    @abstractmethod
    def build_request(self, image_data: Optional[bytes]) -> dict:
        """
        Turn raw JPEG bytes into the request body for execute().
        CPU-bound (base64 encoding); callers run it off the event loop.
        Raises MissingImageDataError when image_data is None.
        """
        ...

    @abstractmethod
    async def execute(self, request: dict) -> list[ProductMatch]:
        """Send a built request and return matches in backend order."""
        ...

    async def search_image(self, image_data: Optional[bytes]) -> list[ProductMatch]:
        """Build and send in one step. Raises ProductSearchError subclasses."""
        return await self.execute(self.build_request(image_data))

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for logs/display."""
        ...

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
