"""SQLAlchemy-backed draft store (SQLite or PostgreSQL)."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from common.datetime import ensure_utc, utc_now
from sentinel.errors import PersistenceError
from sentinel.models import (
    DraftSource,
    DraftStatus,
    IngestionInfo,
    LocalizedText,
    NewsDraft,
)
from sentinel.store import UPDATABLE_FIELDS

logger = logging.getLogger(__name__)

Base = declarative_base()


class DraftRecord(Base):
    """Row of the news_drafts table."""
    __tablename__ = "news_drafts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(String(30), nullable=False, default=DraftStatus.DRAFT.value, index=True)

    title_en = Column(Text, nullable=False, default="")
    title_km = Column(Text, nullable=False, default="")
    content_en = Column(Text, nullable=False, default="")
    content_km = Column(Text, nullable=False, default="")
    thumbnail = Column(String(1000))

    source_name = Column(String(200), nullable=False)
    source_url = Column(String(1000), nullable=False, index=True)
    source_published_at = Column(DateTime(timezone=True))
    source_guid = Column(String(1000))

    ingestion_method = Column(String(30), nullable=False, default="sentinel")
    run_id = Column(String(50), nullable=False, index=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False)
    formatter_stages = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


def _columns_from_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Flatten draft fields into column values."""
    values: dict[str, Any] = {}
    if "title" in fields:
        values["title_en"] = fields["title"].en
        values["title_km"] = fields["title"].km
    if "content" in fields:
        values["content_en"] = fields["content"].en
        values["content_km"] = fields["content"].km
    if "thumbnail" in fields:
        values["thumbnail"] = fields["thumbnail"]
    if "status" in fields:
        values["status"] = DraftStatus(fields["status"]).value
    if "source" in fields:
        source = fields["source"]
        values["source_name"] = source.name
        values["source_url"] = source.url
        values["source_published_at"] = source.published_at
        values["source_guid"] = source.guid
    if "ingestion" in fields:
        ingestion = fields["ingestion"]
        values["ingestion_method"] = ingestion.method
        values["run_id"] = ingestion.run_id
        values["fetched_at"] = ingestion.fetched_at
        values["formatter_stages"] = list(ingestion.formatter_stages_applied)
    return values


def _to_draft(record: DraftRecord) -> NewsDraft:
    return NewsDraft(
        id=str(record.id),
        title=LocalizedText(en=record.title_en or "", km=record.title_km or ""),
        content=LocalizedText(en=record.content_en or "", km=record.content_km or ""),
        thumbnail=record.thumbnail,
        source=DraftSource(
            name=record.source_name,
            url=record.source_url,
            published_at=ensure_utc(record.source_published_at),
            guid=record.source_guid,
        ),
        ingestion=IngestionInfo(
            method=record.ingestion_method,
            run_id=record.run_id,
            fetched_at=ensure_utc(record.fetched_at),
            formatter_stages_applied=list(record.formatter_stages or []),
        ),
        status=DraftStatus(record.status),
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
    )


class SqlDraftStore:
    """Draft store on any SQLAlchemy URL; tables are created on construction."""

    def __init__(self, database_url: str, echo: bool = False):
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if database_url.startswith("sqlite"):
            # Sessions are used from worker threads
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        logger.info("Draft store ready on %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Session scope: commit on success, rollback and wrap errors on failure."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def find_by_source_url(self, url: str) -> Optional[NewsDraft]:
        stmt = (
            select(DraftRecord)
            .where(DraftRecord.source_url == url)
            .where(DraftRecord.status != DraftStatus.DUPLICATE_REJECTED.value)
            .order_by(DraftRecord.id)
            .limit(1)
        )
        with self.get_session() as session:
            record = session.execute(stmt).scalars().first()
            return _to_draft(record) if record is not None else None

    def insert(self, draft: NewsDraft) -> str:
        now = utc_now()
        values = _columns_from_fields(
            {
                "title": draft.title,
                "content": draft.content,
                "thumbnail": draft.thumbnail,
                "status": draft.status,
                "source": draft.source,
                "ingestion": draft.ingestion,
            }
        )
        record = DraftRecord(**values, created_at=now, updated_at=now)
        with self.get_session() as session:
            session.add(record)
            session.flush()
            draft_id = str(record.id)
        logger.debug("Inserted draft %s for %s", draft_id, draft.source.url)
        return draft_id

    def update(self, draft_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise PersistenceError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        with self.get_session() as session:
            record = session.get(DraftRecord, int(draft_id))
            if record is None:
                raise PersistenceError(f"Draft not found: {draft_id}")
            for column, value in _columns_from_fields(fields).items():
                setattr(record, column, value)
            record.updated_at = utc_now()

    def get(self, draft_id: str) -> Optional[NewsDraft]:
        try:
            key = int(draft_id)
        except (TypeError, ValueError):
            return None
        with self.get_session() as session:
            record = session.get(DraftRecord, key)
            return _to_draft(record) if record is not None else None

    def iter_drafts(self) -> Iterator[NewsDraft]:
        with self.get_session() as session:
            records = session.execute(select(DraftRecord).order_by(DraftRecord.id)).scalars().all()
            drafts = [_to_draft(r) for r in records]
        yield from drafts
