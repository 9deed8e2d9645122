"""Regression detector for the cleaner: defect signatures over stored drafts."""

import logging
import re

from common.datetime import utc_now
from common.html import WHITESPACE_RE
from data_quality.models import DataQualityReport, SignatureStats
from sentinel.models import DraftStatus, NewsDraft
from sentinel.store import DraftStore

logger = logging.getLogger(__name__)

CODE_FENCE = "code_fence"
DOCUMENT_SKELETON = "document_skeleton"
PARAGRAPH_FREE = "paragraph_free"
MISSING_TRANSLATION = "missing_translation"
SIGNATURES = (CODE_FENCE, DOCUMENT_SKELETON, PARAGRAPH_FREE, MISSING_TRANSLATION)

PARAGRAPH_FREE_MIN_CHARS = 200
SAMPLE_SIZE = 5

_FENCE_RE = re.compile(r"`{3,}|'{3}|\"{3}")
_SKELETON_RE = re.compile(r"<!doctype|<(?:html|head|body|script|style|meta|title)\b", re.I)
_PARAGRAPH_RE = re.compile(r"<p\b", re.I)
_TAG_RE = re.compile(r"<[^>]+>")


def check_content(html: str) -> list[str]:
    """Defect signatures present in one body of markup."""
    if not html:
        return []

    found = []
    if _FENCE_RE.search(html):
        found.append(CODE_FENCE)
    if _SKELETON_RE.search(html):
        found.append(DOCUMENT_SKELETON)
    text = WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()
    if len(text) > PARAGRAPH_FREE_MIN_CHARS and not _PARAGRAPH_RE.search(html):
        found.append(PARAGRAPH_FREE)
    return found


def check_draft(draft: NewsDraft) -> list[str]:
    found = check_content(draft.content.en)
    for signature in check_content(draft.content.km):
        if signature not in found:
            found.append(signature)
    if draft.content.en.strip() and not draft.content.km.strip():
        found.append(MISSING_TRANSLATION)
    return found


def get_data_quality(store: DraftStore) -> DataQualityReport:
    """Count drafts per defect signature over all non-rejected drafts."""
    stats = {signature: SignatureStats(signature) for signature in SIGNATURES}
    total = 0
    affected = 0

    for draft in store.iter_drafts():
        if draft.status == DraftStatus.DUPLICATE_REJECTED:
            continue
        total += 1
        found = check_draft(draft)
        if found:
            affected += 1
        for signature in found:
            entry = stats[signature]
            entry.count += 1
            if len(entry.sample_ids) < SAMPLE_SIZE and draft.id is not None:
                entry.sample_ids.append(draft.id)

    for entry in stats.values():
        entry.proportion = round(entry.count / total, 4) if total else 0.0

    logger.info("Checked %d drafts, %d with defects", total, affected)
    return DataQualityReport(
        generated_at=utc_now(),
        total_drafts=total,
        affected_drafts=affected,
        signatures=stats,
    )
