"""Exceptions raised by the sentinel orchestrator."""

from ingest_articles.fetch_articles.fetch_articles import SourceFetchError


class SentinelError(Exception):
    """Base class for sentinel errors."""


class RunInProgressError(SentinelError):
    """Raised when a cycle is requested while another one is active."""


class PersistenceError(SentinelError):
    """Raised by draft stores when a read or write fails."""


class OperationTimeoutError(SentinelError):
    """Raised when a bounded external call does not finish in time."""


__all__ = [
    "OperationTimeoutError",
    "PersistenceError",
    "RunInProgressError",
    "SentinelError",
    "SourceFetchError",
]
