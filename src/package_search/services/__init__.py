"""Service layer for scheduled index refreshes."""

from .base_scheduler_service import BaseSchedulerService
from .index_refresh_service import DocumentSource, IndexRefreshService
from .scheduler_protocol import RefreshSchedulerProtocol


__all__ = [
    "BaseSchedulerService",
    "DocumentSource",
    "IndexRefreshService",
    "RefreshSchedulerProtocol",
]
