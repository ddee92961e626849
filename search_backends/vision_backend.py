"""
Google Cloud Vision Product Search backend.

API docs: https://cloud.google.com/vision/product-search/docs/searching
Endpoint: POST https://vision.googleapis.com/v1/images:annotate?key=API_KEY

One request per search:
  • the cropped object JPEG, base64-encoded inline
  • feature PRODUCT_SEARCH, capped at 5 results
  • productSearchParams pointing at one product set + one product category

Authentication:
  Plain API key passed as the `key` query parameter. No OAuth, no service
  account. Restrict the key to the Cloud Vision API in the console.

Known quirk:
  Requests containing large images fail when the body is gzip-compressed,
  so compression is explicitly disabled on every call.
"""
from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Optional

import aiohttp

from config import MAX_RESULTS, SearchConfig
from search_backends.base import (
    MissingImageDataError,
    ProductMatch,
    RequestConstructionError,
    ResponseParseError,
    SearchBackend,
    TransportError,
)

logger = logging.getLogger(__name__)

FEATURE_PRODUCT_SEARCH = "PRODUCT_SEARCH"


class CloudVisionBackend(SearchBackend):

    def __init__(self, search_config: SearchConfig) -> None:
        self._config  = search_config
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return "Google Cloud Vision / Product Search"

    @property
    def product_set(self) -> str:
        return product_set_path(self._config.project, self._config.region, self._config.product_set)

    def build_request(self, image_data: Optional[bytes]) -> dict:
        return build_annotate_request(image_data, self._config)

    async def execute(self, request: dict) -> list[ProductMatch]:
        """
        POST one annotate request and map the answer to ProductMatch objects.

        Raises:
            TransportError      — network failure, timeout, or non-200 status
            ResponseParseError  — body is not JSON or lacks productSearchResults
        """
        session = self._get_session()
        logger.debug("Created Cloud Vision request for %s, sending", self.product_set)
        try:
            async with session.post(
                self._config.api_url,
                params   = {"key": self._config.api_key},
                json     = request,
                compress = False,
                timeout  = aiohttp.ClientTimeout(total=self._config.timeout_seconds),
            ) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise TransportError(f"Cloud Vision error {resp.status}: {text[:200]}")
                try:
                    data = await resp.json(content_type=None)
                except ValueError as exc:
                    raise ResponseParseError(f"Cloud Vision returned a non-JSON body: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"Cloud Vision request failed: {exc!r}") from exc

        matches = parse_product_search_response(data)
        logger.info("Cloud Vision returned %d matches from %s", len(matches), self.product_set)
        return matches

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ── HTTP helper ───────────────────────────────────────────────────────────

    def _get_session(self) -> aiohttp.ClientSession:
        """Shared session; its connector limit bounds concurrent calls."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=self._config.max_connections),
            )
        return self._session


# ── Request construction ──────────────────────────────────────────────────────

def product_set_path(project: str, region: str, product_set: str) -> str:
    """Full resource name, e.g. projects/my-shop/locations/us-west1/productSets/summer."""
    return f"projects/{project}/locations/{region}/productSets/{product_set}"


def build_annotate_request(image_data: Optional[bytes], search_config: SearchConfig) -> dict:
    """
    Build the images:annotate JSON body for one cropped object.

    The bounding polygon is sent empty: the image is already cropped to the
    object, so Vision searches the whole picture.
    """
    if not image_data:
        raise MissingImageDataError("Failed to get object image data")

    try:
        content = base64.b64encode(image_data).decode("ascii")
    except (TypeError, ValueError) as exc:
        raise RequestConstructionError(f"Could not encode object image: {exc}") from exc

    return {
        "requests": [{
            "image":    {"content": content},
            "features": [{"type": FEATURE_PRODUCT_SEARCH, "maxResults": MAX_RESULTS}],
            "imageContext": {
                "productSearchParams": {
                    "productSet": product_set_path(
                        search_config.project, search_config.region, search_config.product_set,
                    ),
                    "productCategories": [search_config.product_category],
                    "boundingPoly":      {},
                },
            },
        }],
    }


# ── Parser ────────────────────────────────────────────────────────────────────

def parse_product_search_response(data: Any) -> list[ProductMatch]:
    """
    Map responses[0].productSearchResults.results to ProductMatch objects.

    All-or-nothing: a single malformed result fails the whole response.
    Vision reports per-image failures inside a 200 response as
    responses[0].error, which is treated as a parse failure too.
    """
    try:
        first = data["responses"][0]
        if first.get("error"):
            error = first["error"]
            raise ResponseParseError(
                f"Cloud Vision rejected the image: {error.get('message', error)}"
            )
        results = first["productSearchResults"]["results"]
        return [
            ProductMatch(
                image_url = result["image"],
                title     = result["product"]["displayName"],
                score     = str(float(result["score"])),
            )
            for result in results
        ]
    except ResponseParseError:
        raise
    except (KeyError, IndexError, TypeError, AttributeError, ValueError) as exc:
        raise ResponseParseError(f"Failed to get productSearchResults: {exc!r}") from exc
