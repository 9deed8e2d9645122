"""Sentinel ingestion orchestrator.

One cycle fetches candidate items, drops stale or insignificant ones, then
for each item: dedupe, clean, format, translate and persist a bilingual
draft. Only one cycle (or reprocess/import) runs at a time.
"""

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from functools import partial
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from clean_content.clean import clean, clean_text
from clean_content.models import CleanedFragment
from common.datetime import utc_now
from common.hashing import generate_run_id
from format_content.enhancers import HttpTextEnhancer, NullTextEnhancer
from format_content.format_content import ContentFormatter
from format_content.models import StageOptions
from ingest_articles.fetch_articles.fetch_article_text import fetch_article_html
from ingest_articles.fetch_articles.fetch_articles import fetch_candidates
from ingest_articles.fetch_articles.fetch_rss_articles import USER_AGENT, feed_title, parse_feed
from ingest_articles.fetch_articles.thumbnails import find_page_image
from ingest_articles.models import CandidateItem, SourceFeed
from sentinel.config import SentinelConfig, get_config
from sentinel.errors import OperationTimeoutError, PersistenceError, RunInProgressError
from sentinel.models import (
    DraftSource,
    DraftStatus,
    ImportResult,
    IngestionInfo,
    LocalizedText,
    NewsDraft,
    ReprocessSummary,
    RunConfig,
    RunState,
    RunSummary,
)
from sentinel.run_state import RunStateCell
from sentinel.sql_store import SqlDraftStore
from sentinel.store import DraftStore, MemoryDraftStore
from sentinel.translate import HttpTranslator, NullTranslator, Translator

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///sentinel.db"

Fetcher = Callable[[list[SourceFeed], Optional[datetime]], list[CandidateItem]]


@dataclass
class _CycleContext:
    run_id: str
    persist: bool
    seen_urls: set[str] = field(default_factory=set)


def select_candidates(
    candidates: list[CandidateItem],
    config: SentinelConfig,
    now: Optional[datetime] = None,
    max_items: Optional[int] = None,
) -> tuple[list[CandidateItem], int]:
    """Keep recent, significant items, newest first, up to the per-run cap.

    Returns the selected items and how many were dropped.
    """
    now = now or utc_now()
    window = timedelta(hours=config.lookback_hours)
    patterns = [re.compile(keyword, re.I) for keyword in config.significance.keywords]
    preferred = {name.lower() for name in config.significance.preferred_sources}
    check_significance = config.significance.require_match and (patterns or preferred)

    selected = []
    for item in candidates:
        published = item.published_at or item.fetched_at
        if now - published >= window:
            continue
        if check_significance:
            text = f"{item.raw_title} {clean_text(item.raw_body) or ''}"
            if not (item.source_name.lower() in preferred or any(p.search(text) for p in patterns)):
                continue
        selected.append(item)

    selected.sort(key=lambda i: i.published_at or i.fetched_at, reverse=True)
    cap = max_items if max_items is not None else config.max_items_per_run
    if cap and cap > 0:
        selected = selected[:cap]
    return selected, len(candidates) - len(selected)


class SentinelService:
    """Drives ingestion cycles and owns the current run state."""

    def __init__(
        self,
        store: DraftStore,
        config: Optional[SentinelConfig] = None,
        fetcher: Optional[Fetcher] = None,
        formatter: Optional[ContentFormatter] = None,
        translator: Optional[Translator] = None,
    ):
        self.config = config or SentinelConfig()
        self.store = store
        self.fetcher = fetcher or partial(
            fetch_candidates,
            timeout=self.config.fetch.timeout_seconds,
            resolve_short_bodies=self.config.fetch.resolve_short_bodies,
            min_body_chars=self.config.fetch.min_body_chars,
        )
        self.formatter = formatter or ContentFormatter()
        self.translator = translator or NullTranslator()

        self._run_lock = threading.Lock()
        self._commit_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._state = RunStateCell()
        workers = max(1, self.config.max_workers)
        self._io_pool = ThreadPoolExecutor(max_workers=workers * 2 + 2, thread_name_prefix="sentinel-io")

    @classmethod
    def from_config(cls, config: Optional[SentinelConfig] = None) -> "SentinelService":
        """Build a service with the store and collaborators the config names."""
        config = config or get_config()

        if config.storage.backend == "sql":
            store = SqlDraftStore(config.storage.database_url or DEFAULT_DATABASE_URL)
        else:
            store = MemoryDraftStore()

        if config.translation.api_url:
            translator = HttpTranslator(config.translation.api_url, timeout=config.translation.timeout_seconds)
        else:
            translator = NullTranslator()

        if config.formatter.enhancer_url:
            enhancer = HttpTextEnhancer(
                config.formatter.enhancer_url, timeout=config.formatter.enhancer_timeout_seconds
            )
        else:
            enhancer = NullTextEnhancer()

        return cls(store, config=config, formatter=ContentFormatter(enhancer), translator=translator)

    # Status

    def get_status(self) -> RunSummary:
        """Snapshot of the current (or last) run."""
        return self._state.snapshot()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def request_stop(self) -> bool:
        """Ask the active cycle to stop after its in-flight items.

        Returns False when nothing is running.
        """
        if not self.is_running:
            return False
        logger.info("Stop requested for the active sentinel run")
        self._stop_event.set()
        return True

    def close(self) -> None:
        self._io_pool.shutdown(wait=False)

    # Cycle

    def run_once(self, run_config: Optional[RunConfig] = None) -> RunSummary:
        """Run one ingestion cycle.

        Raises:
            RunInProgressError: If another cycle is active.
        """
        run_config = run_config or RunConfig()
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError("A sentinel run is already in progress")
        try:
            return self._run_cycle(run_config)
        finally:
            self._run_lock.release()

    def _run_cycle(self, run_config: RunConfig) -> RunSummary:
        self._stop_event.clear()
        started_at = utc_now()
        persist = (
            run_config.persist_override
            if run_config.persist_override is not None
            else self.config.auto_persist
        )
        ctx = _CycleContext(run_id=generate_run_id(started_at), persist=persist)
        self._state.publish(
            RunSummary(
                run_id=ctx.run_id,
                started_at=started_at,
                state=RunState.RUNNING,
                persisted=persist,
                trigger=run_config.trigger,
            )
        )
        logger.info("Run %s started (trigger=%s, persist=%s)", ctx.run_id, run_config.trigger, persist)

        sources = run_config.sources if run_config.sources is not None else self.config.sources
        since = started_at - timedelta(hours=self.config.lookback_hours)
        try:
            candidates = self.fetcher(sources, since)
        except Exception as e:
            logger.error("Run %s could not fetch any source: %s", ctx.run_id, e)
            return self._finalize(ctx, last_error=f"Source fetch failed: {e}")

        self._state.update(items_fetched=len(candidates))
        try:
            self._process_candidates(candidates, run_config, started_at, ctx)
        except Exception as e:
            logger.exception("Run %s aborted: %s", ctx.run_id, e)
            return self._finalize(ctx, last_error=f"Run aborted: {e}")

        return self._finalize(ctx)

    def _process_candidates(
        self,
        candidates: list[CandidateItem],
        run_config: RunConfig,
        started_at: datetime,
        ctx: _CycleContext,
    ) -> None:
        selected, filtered = select_candidates(
            candidates, self.config, now=started_at, max_items=run_config.max_items
        )
        self._state.update(items_filtered=filtered)
        logger.info("Run %s: %d candidates, %d selected", ctx.run_id, len(candidates), len(selected))

        workers = max(1, self.config.max_workers)
        if workers == 1 or len(selected) <= 1:
            for item in selected:
                self._process_item(item, ctx)
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sentinel-item") as pool:
                for future in [pool.submit(self._process_item, item, ctx) for item in selected]:
                    future.result()

    def _finalize(self, ctx: _CycleContext, last_error: Optional[str] = None) -> RunSummary:
        changes = {
            "finished_at": utc_now(),
            "state": RunState.CANCELLED if self._stop_event.is_set() else RunState.COMPLETED,
        }
        if last_error:
            changes["last_error"] = last_error
        summary = self._state.update(**changes)
        logger.info(
            "Run %s %s: fetched=%d accepted=%d duplicate=%d failed=%d",
            ctx.run_id,
            summary.state.value,
            summary.items_fetched,
            summary.items_accepted,
            summary.items_duplicate,
            summary.items_failed,
        )
        return replace(summary)

    def _process_item(self, item: CandidateItem, ctx: _CycleContext) -> None:
        """Take one candidate through dedupe, clean, format and persist.

        Every outcome lands in exactly one counter; nothing propagates.
        """
        if self._stop_event.is_set():
            return

        try:
            if not self._claim(item, ctx):
                return

            fragment = clean(item.raw_body)
            if fragment.is_empty:
                logger.warning("Cleaning left no content for %s", item.source_url)
                self._state.increment("items_failed")
                return

            draft = self.build_draft(item, fragment, ctx.run_id)
            self._commit(draft, ctx)
        except Exception as e:
            logger.exception("Failed to process %s", item.source_url)
            self._record_failure(f"{item.source_url}: {e}")

    def _claim(self, item: CandidateItem, ctx: _CycleContext) -> bool:
        """Serialized dedupe check. Returns False for duplicates."""
        with self._commit_lock:
            duplicate = item.source_url in ctx.seen_urls
            if not duplicate:
                existing = self._call_with_timeout(
                    self.store.find_by_source_url, item.source_url,
                    timeout=self.config.storage.timeout_seconds,
                )
                duplicate = existing is not None
            ctx.seen_urls.add(item.source_url)

            if duplicate:
                logger.info("Duplicate source url %s", item.source_url)
                self._state.increment("items_duplicate")
                if ctx.persist and self.config.record_rejections:
                    self._record_rejection(item, ctx)
            return not duplicate

    def _commit(self, draft: NewsDraft, ctx: _CycleContext) -> None:
        with self._commit_lock:
            if not ctx.persist:
                self._state.modify(
                    lambda s: replace(
                        s, items_accepted=s.items_accepted + 1, previews=s.previews + (draft.title.en,)
                    )
                )
                logger.info("Previewed %s", draft.source.url)
                return

            try:
                draft_id = self._call_with_timeout(
                    self.store.insert, draft, timeout=self.config.storage.timeout_seconds
                )
            except (PersistenceError, OperationTimeoutError) as e:
                logger.error("Failed to persist draft for %s: %s", draft.source.url, e)
                self._record_failure(f"Persist failed for {draft.source.url}: {e}")
                return

            self._state.increment("items_accepted")
            logger.info("Created draft %s for %s", draft_id, draft.source.url)

    def _record_rejection(self, item: CandidateItem, ctx: _CycleContext) -> None:
        rejected = NewsDraft(
            title=LocalizedText(en=clean_text(item.raw_title) or ""),
            content=LocalizedText(),
            thumbnail=item.thumbnail_url,
            source=DraftSource(item.source_name, item.source_url, item.published_at, item.guid),
            ingestion=IngestionInfo(run_id=ctx.run_id, fetched_at=item.fetched_at),
            status=DraftStatus.DUPLICATE_REJECTED,
        )
        try:
            self._call_with_timeout(self.store.insert, rejected, timeout=self.config.storage.timeout_seconds)
        except (PersistenceError, OperationTimeoutError) as e:
            logger.warning("Could not record rejection for %s: %s", item.source_url, e)

    def _record_failure(self, message: str) -> None:
        self._state.modify(lambda s: replace(s, items_failed=s.items_failed + 1, last_error=message))

    def _call_with_timeout(self, fn: Callable, *args, timeout: float):
        """Run ``fn`` on the IO pool, giving up after ``timeout`` seconds.

        A call that times out keeps running in its pool thread; its result is
        discarded.
        """
        future = self._io_pool.submit(fn, *args)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            future.cancel()
            name = getattr(fn, "__name__", repr(fn))
            raise OperationTimeoutError(f"{name} timed out after {timeout}s") from e

    # Draft assembly

    def build_draft(self, item: CandidateItem, fragment: CleanedFragment, run_id: str) -> NewsDraft:
        """Format a cleaned item and assemble its bilingual draft."""
        title_en = clean_text(item.raw_title) or ""
        options = StageOptions.ingestion_defaults(
            enable_ai_enhancement=self.config.formatter.enable_ai_enhancement
        )
        result = self.formatter.format(fragment, options, title=title_en)
        for warning in result.warnings:
            logger.info("Formatter warning for %s: %s", item.source_url, warning)

        title_km = clean_text(self._translate(title_en)) or ""
        content_km = clean(self._translate(result.content)).body_html

        return NewsDraft(
            title=LocalizedText(en=title_en, km=title_km),
            content=LocalizedText(en=result.content, km=content_km),
            thumbnail=item.thumbnail_url,
            source=DraftSource(
                name=item.source_name,
                url=item.source_url,
                published_at=item.published_at,
                guid=item.guid,
            ),
            ingestion=IngestionInfo(
                run_id=run_id,
                fetched_at=item.fetched_at,
                formatter_stages_applied=list(result.applied_stages),
            ),
            status=DraftStatus.DRAFT,
        )

    def _translate(self, text: str) -> str:
        """Secondary-language text, or "" when translation is unavailable."""
        if not text:
            return ""
        target = self.config.translation.target_lang
        try:
            translated = self._call_with_timeout(
                self.translator.translate, text, target,
                timeout=self.config.translation.timeout_seconds,
            )
        except Exception as e:
            logger.warning("Translation to %s unavailable: %s", target, e)
            return ""
        return translated or ""

    # Maintenance

    def reprocess_drafts(self, draft_ids: Optional[list[str]] = None) -> ReprocessSummary:
        """Re-clean and re-format stored drafts, writing back changed content.

        Raises:
            RunInProgressError: If a cycle is active.
        """
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError("A sentinel run is already in progress")
        try:
            summary = ReprocessSummary()
            wanted = set(draft_ids) if draft_ids else None
            for draft in list(self.store.iter_drafts()):
                if wanted is not None and draft.id not in wanted:
                    continue
                if draft.status == DraftStatus.DUPLICATE_REJECTED:
                    continue
                summary.drafts_seen += 1
                try:
                    content = self.reformat_content(draft)
                    if content != draft.content:
                        self.store.update(draft.id, {"content": content})
                        summary.drafts_updated += 1
                except Exception as e:
                    logger.error("Failed to reprocess draft %s: %s", draft.id, e)
                    summary.drafts_failed += 1
                    summary.last_error = f"{draft.id}: {e}"

            logger.info(
                "Reprocessed %d drafts: %d updated, %d failed",
                summary.drafts_seen, summary.drafts_updated, summary.drafts_failed,
            )
            return summary
        finally:
            self._run_lock.release()

    def reformat_content(self, draft: NewsDraft) -> LocalizedText:
        """Content of ``draft`` after cleaning and (for en) formatting again."""
        fragment = clean(draft.content.en)
        if fragment.is_empty:
            content_en = ""
        else:
            # AI output is not repeatable, so reprocessing never calls the enhancer
            result = self.formatter.format(
                fragment, StageOptions.ingestion_defaults(enable_ai_enhancement=False), title=draft.title.en
            )
            content_en = result.content
        return LocalizedText(en=content_en, km=clean(draft.content.km).body_html)

    def import_url(self, url: str, persist: bool = False) -> ImportResult:
        """Import one item from a feed URL or an article page URL.

        Raises:
            RunInProgressError: If a cycle is active.
        """
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError("A sentinel run is already in progress")
        try:
            item = self._resolve_import(url)
            if item is None:
                return ImportResult(success=False, message="Not a valid RSS feed or article URL")

            timeout = self.config.storage.timeout_seconds
            existing = self._call_with_timeout(self.store.find_by_source_url, item.source_url, timeout=timeout)
            if existing is not None:
                return ImportResult(
                    success=False, message="Duplicate source url", draft_id=existing.id, duplicate=True
                )

            fragment = clean(item.raw_body)
            if fragment.is_empty:
                return ImportResult(success=False, message="Cleaning left no content")

            draft = self.build_draft(item, fragment, generate_run_id(utc_now()))
            if not persist:
                return ImportResult(success=True, message="Preview", preview=draft)

            draft_id = self._call_with_timeout(self.store.insert, draft, timeout=timeout)
            logger.info("Imported %s as draft %s", item.source_url, draft_id)
            return ImportResult(success=True, message="Created", draft_id=draft_id)
        except (PersistenceError, OperationTimeoutError) as e:
            logger.error("Import of %s failed: %s", url, e)
            return ImportResult(success=False, message=str(e))
        finally:
            self._run_lock.release()

    def _resolve_import(self, url: str) -> Optional[CandidateItem]:
        timeout = self.config.fetch.timeout_seconds
        try:
            response = requests.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Import fetch failed for %s: %s", url, e)
            return None

        items = list(parse_feed(response.content, feed_title(response.content) or "Custom Source"))
        if items:
            return next((i for i in items if url in (i.source_url, i.guid)), items[0])

        page = fetch_article_html(url, timeout=timeout)
        if page is None:
            return None
        return CandidateItem(
            source_url=url,
            source_name=urlparse(url).netloc or "Custom Source",
            raw_title=page.title or url,
            raw_body=page.html,
            fetched_at=utc_now(),
            thumbnail_url=find_page_image(page.page_html, url),
        )
