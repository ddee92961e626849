"""
product_search.py — public interface for product search.

Callers import only from here:
  from product_search import ProductSearchClient, ProductMatch

Flow for one detected object:
  1. The annotate request (base64 of the JPEG) is built on a dedicated
     single-thread worker, since encoding a large crop blocks the loop.
  2. The request is sent to Cloud Vision through the backend.
  3. Matches come back in Vision's order. ANY failure (no image bytes,
     network error, odd response) is replaced by 8 placeholder matches.

Every search produces exactly one list. search() never raises for search
failures; the only error a caller can see is SearchClientClosedError when
the client is shut down before or during the call.
"""
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from config import SearchConfig
from detected_object import DetectedObjectInfo
from search_backends.base import (
    MissingImageDataError,
    ProductMatch,
    ProductSearchError,
    RequestConstructionError,
    SearchBackend,
    SearchClientClosedError,
    placeholder_matches,
)

logger = logging.getLogger(__name__)

__all__ = ["ProductSearchClient", "ProductMatch", "ResultCallback"]

ResultCallback = Callable[[DetectedObjectInfo, list[ProductMatch]], None]


class ProductSearchClient:
    """
    Searches a Cloud Vision product set for detected objects.

    Use as an async context manager, or call shutdown() when done:

        async with ProductSearchClient(SearchConfig.from_env()) as client:
            matches = await client.search(detected_object)
    """

    def __init__(
        self,
        search_config: Optional[SearchConfig] = None,
        backend: Optional[SearchBackend] = None,
    ) -> None:
        if backend is None:
            from search_backends.vision_backend import CloudVisionBackend
            backend = CloudVisionBackend((search_config or SearchConfig.from_env()).validate())
        self._backend  = backend
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="product-search")
        self._tasks: set[asyncio.Task] = set()
        self._closed   = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "ProductSearchClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    # ── Search ────────────────────────────────────────────────────────────────

    async def search(self, detected_object: DetectedObjectInfo) -> list[ProductMatch]:
        """
        Return product matches for detected_object, or placeholders on failure.

        Raises SearchClientClosedError if called after shutdown(),
        or if shutdown() interrupts the search before the request is sent.
        """
        self._ensure_open()
        try:
            request = await self._build_request(detected_object)
            # shutdown() may have run while the worker was encoding
            self._ensure_open()
            return await self._backend.execute(request)
        except SearchClientClosedError:
            raise
        except MissingImageDataError as exc:
            logger.error("Failed to create product search request for object %d: %s",
                         detected_object.object_index, exc)
        except RequestConstructionError as exc:
            logger.error("Failed to create product search request for object %d: %s",
                         detected_object.object_index, exc, exc_info=exc)
        except ProductSearchError as exc:
            logger.warning("[%s] Product search failed for object %d: %s",
                           self._backend.name, detected_object.object_index, exc)
        except Exception:
            logger.exception("[%s] Unexpected error searching object %d",
                             self._backend.name, detected_object.object_index)
        return placeholder_matches()

    def submit(
        self,
        detected_object: DetectedObjectInfo,
        on_result: Optional[ResultCallback] = None,
    ) -> asyncio.Task:
        """
        Start a search without waiting for it.

        on_result(detected_object, matches) is called exactly once when the
        search finishes. It is not called if the search is cancelled by
        shutdown(). The returned task resolves to the same matches.
        """
        self._ensure_open()
        task = asyncio.get_running_loop().create_task(self.search(detected_object))
        self._tasks.add(task)

        def _deliver(done: asyncio.Task) -> None:
            self._tasks.discard(done)
            if done.cancelled() or on_result is None:
                return
            matches = done.result()
            try:
                on_result(detected_object, matches)
            except Exception:
                logger.exception("Product search result callback raised")

        task.add_done_callback(_deliver)
        return task

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def shutdown(self) -> None:
        """Cancel in-flight searches, close the HTTP session, stop the worker."""
        if self._closed:
            return
        self._closed = True

        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info("Cancelled %d in-flight product searches", len(pending))

        await self._backend.close()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._closed:
            raise SearchClientClosedError("ProductSearchClient has been shut down")

    async def _build_request(self, detected_object: DetectedObjectInfo) -> dict:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                self._executor, self._backend.build_request, detected_object.image_data,
            )
        except asyncio.CancelledError:
            # cancel_futures=True in shutdown() cancels queued builds of
            # direct search() calls; submit() tasks are cancelled explicitly
            if self._closed and asyncio.current_task() not in self._tasks:
                raise SearchClientClosedError("ProductSearchClient was shut down mid-search") from None
            raise
        except ProductSearchError:
            raise
        except RuntimeError as exc:
            if self._closed:
                raise SearchClientClosedError("ProductSearchClient was shut down mid-search") from exc
            raise RequestConstructionError(f"{type(exc).__name__}: {exc}") from exc
        except Exception as exc:
            raise RequestConstructionError(f"{type(exc).__name__}: {exc}") from exc
