"""Periodic index rebuilds driven by a cron schedule."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
import inspect
import logging
from typing import Any

from package_search.exceptions import InvalidDocumentError
from package_search.search.document_store import StoredDocument, document_name
from package_search.search.lifecycle import IndexLifecycleController

from .base_scheduler_service import BaseSchedulerService


logger = logging.getLogger(__name__)

DocumentSource = Callable[[], Iterable[StoredDocument] | Awaitable[Iterable[StoredDocument]]]


class IndexRefreshService(BaseSchedulerService):
    """Pull documents from an optional source, then rebuild and swap the index.

    A configured source is authoritative: after a successful pull, stored
    packages it no longer yields are removed before the rebuild.

    Builds run in a worker thread so the event loop keeps serving queries
    against the previously published snapshot. A trigger that arrives while a
    build is in flight is rejected; the in-flight build still publishes.
    """

    def __init__(
        self,
        controller: IndexLifecycleController,
        *,
        source: DocumentSource | None = None,
        refresh_schedule: str | None = None,
        enabled: bool = True,
        run_triggers_in_background: bool = True,
        manage_cron_loop: bool = True,
    ) -> None:
        super().__init__(
            name="index-refresh",
            refresh_schedule=refresh_schedule,
            enabled=enabled,
            run_triggers_in_background=run_triggers_in_background,
            manage_cron_loop=manage_cron_loop,
        )
        self.controller = controller
        self._source = source
        self._loaded_documents = 0
        self._rejected_documents = 0
        self._removed_documents = 0

    async def _initialize_impl(self) -> bool:
        if self.controller.is_ready:
            return True
        result = await self._run_once()
        if not result.get("success"):
            logger.error("Initial index build failed: %s", result.get("message"))
            return False
        return True

    async def _stop_impl(self) -> None:
        return None

    async def _execute_refresh_impl(self) -> dict:
        loaded, rejected, removed = await self._pull_source()
        snapshot = await asyncio.to_thread(self.controller.rebuild)
        return {
            "success": True,
            "message": f"Published index generation {snapshot.generation}",
            "generation": snapshot.generation,
            "documents": snapshot.document_count,
            "skipped": len(snapshot.errors),
            "loaded": loaded,
            "rejected": rejected,
            "removed": removed,
            "built_at": snapshot.built_at.isoformat(),
        }

    async def _pull_source(self) -> tuple[int, int, int]:
        if self._source is None:
            return 0, 0, 0

        if inspect.iscoroutinefunction(self._source) or inspect.iscoroutinefunction(
            getattr(self._source, "__call__", None)
        ):
            documents = list(await self._source())
        else:
            # file-backed sources block on IO
            documents = await asyncio.to_thread(lambda: list(self._source()))

        pulled: set[str] = set()
        rejected = 0
        for doc in documents:
            try:
                self.controller.add_package(doc)
            except InvalidDocumentError as exc:
                rejected += 1
                logger.warning("Rejected document from source: %s", exc)
                continue
            pulled.add(document_name(doc))

        stale = [name for name in self.controller.store.package_names() if name not in pulled]
        for name in stale:
            self.controller.remove_package(name)

        loaded = len(pulled)
        self._loaded_documents += loaded
        self._rejected_documents += rejected
        self._removed_documents += len(stale)
        logger.info(
            "Loaded %d documents from source (%d rejected, %d removed)", loaded, rejected, len(stale)
        )
        return loaded, rejected, len(stale)

    def _extra_stats(self) -> dict[str, Any]:
        return {
            "loaded_documents": self._loaded_documents,
            "rejected_documents": self._rejected_documents,
            "removed_documents": self._removed_documents,
            "index": self.controller.stats,
        }
