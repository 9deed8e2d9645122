"""Core formatting logic: run the enabled stages over a cleaned fragment."""

import logging
from typing import Optional

from clean_content.models import CleanedFragment
from common.html import parse_fragment, serialize_fragment
from format_content.enhancers import NullTextEnhancer, TextEnhancer
from format_content.models import FormattedResult, StageOptions
from format_content.stages import PIPELINE, StageContext

logger = logging.getLogger(__name__)


class ContentFormatter:
    """Applies the fixed stage pipeline; reentrant, holds no per-call state."""

    def __init__(self, enhancer: Optional[TextEnhancer] = None):
        self.enhancer = enhancer or NullTextEnhancer()

    def format(
        self,
        fragment: CleanedFragment | str,
        options: Optional[StageOptions] = None,
        title: str = "",
    ) -> FormattedResult:
        source = fragment.body_html if isinstance(fragment, CleanedFragment) else (fragment or "")
        options = options or StageOptions()

        if not options.any_enabled() or not source.strip():
            return FormattedResult(content=source)

        root = parse_fragment(source)
        baseline = serialize_fragment(root)
        ctx = StageContext(title=title or "", enhancer=self.enhancer)
        applied = []

        for stage in PIPELINE:
            if not getattr(options, stage.option):
                continue
            missing = [name for name in stage.requires if not getattr(options, name)]
            if missing:
                ctx.skip(stage.name, f"requires {', '.join(missing)}")
                continue

            replacement = stage.apply(root, ctx)
            if replacement is not None:
                root = replacement
            if stage.name not in ctx.skipped:
                applied.append(stage.name)

        content = serialize_fragment(root)
        if content == baseline:
            content = source

        logger.debug("Applied stages %s with %d warnings", applied, len(ctx.warnings))
        return FormattedResult(
            content=content,
            applied_stages=tuple(applied),
            warnings=tuple(ctx.warnings),
            analysis=ctx.analysis,
        )


def format_content(
    fragment: CleanedFragment | str,
    options: Optional[StageOptions] = None,
    title: str = "",
    enhancer: Optional[TextEnhancer] = None,
) -> FormattedResult:
    """Format a cleaned fragment with a one-off ``ContentFormatter``."""
    return ContentFormatter(enhancer).format(fragment, options, title=title)
