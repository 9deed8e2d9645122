"""Draft persistence boundary and its in-memory implementation."""

import copy
import threading
from dataclasses import replace
from typing import Any, Iterator, Optional, Protocol

from common.datetime import utc_now
from sentinel.errors import PersistenceError
from sentinel.models import DraftStatus, NewsDraft


class DraftStore(Protocol):
    """What the orchestrator needs from draft persistence.

    Every method may be slow or fail; failures raise ``PersistenceError``.
    """

    def find_by_source_url(self, url: str) -> Optional[NewsDraft]:
        """Return a non-rejected draft with this source URL, if any."""
        ...

    def insert(self, draft: NewsDraft) -> str:
        ...

    def update(self, draft_id: str, fields: dict[str, Any]) -> None:
        ...

    def get(self, draft_id: str) -> Optional[NewsDraft]:
        ...

    def iter_drafts(self) -> Iterator[NewsDraft]:
        ...


UPDATABLE_FIELDS = {"title", "content", "thumbnail", "status", "ingestion", "source"}


class MemoryDraftStore:
    """Process-local store used for previews, tests and local runs."""

    def __init__(self):
        self._lock = threading.Lock()
        self._drafts: dict[str, NewsDraft] = {}
        self._next_id = 1

    def find_by_source_url(self, url: str) -> Optional[NewsDraft]:
        with self._lock:
            for draft in self._drafts.values():
                if draft.source.url == url and draft.status != DraftStatus.DUPLICATE_REJECTED:
                    return copy.deepcopy(draft)
        return None

    def insert(self, draft: NewsDraft) -> str:
        now = utc_now()
        with self._lock:
            draft_id = str(self._next_id)
            self._next_id += 1
            self._drafts[draft_id] = replace(
                copy.deepcopy(draft), id=draft_id, created_at=now, updated_at=now
            )
        return draft_id

    def update(self, draft_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise PersistenceError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        with self._lock:
            draft = self._drafts.get(draft_id)
            if draft is None:
                raise PersistenceError(f"Draft not found: {draft_id}")
            self._drafts[draft_id] = replace(draft, **copy.deepcopy(fields), updated_at=utc_now())

    def get(self, draft_id: str) -> Optional[NewsDraft]:
        with self._lock:
            draft = self._drafts.get(draft_id)
            return copy.deepcopy(draft) if draft is not None else None

    def iter_drafts(self) -> Iterator[NewsDraft]:
        with self._lock:
            drafts = [copy.deepcopy(d) for d in self._drafts.values()]
        yield from drafts

    def __len__(self) -> int:
        with self._lock:
            return len(self._drafts)
