"""Batch jobs, their status records and the session orchestrator."""

from news_spine.sync.dispatch import DispatchReceipt, JobDispatcher
from news_spine.sync.job import JobOutcome, JobRunner, SyncJob
from news_spine.sync.orchestrator import (
    ProviderRunStats,
    SyncOrchestrator,
    SyncReport,
    SyncRequest,
)
from news_spine.sync.status import SessionSummary, SyncStatusStore

__all__ = [
    "DispatchReceipt",
    "JobDispatcher",
    "JobOutcome",
    "JobRunner",
    "ProviderRunStats",
    "SessionSummary",
    "SyncJob",
    "SyncOrchestrator",
    "SyncReport",
    "SyncRequest",
    "SyncStatusStore",
]
