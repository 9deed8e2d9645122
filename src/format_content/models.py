"""Data models for the format_content pipeline stage."""

from dataclasses import dataclass, fields
from typing import Any, Optional

# Option names used by the admin API of the previous system
CAMEL_CASE_OPTIONS = {
    "addSectionHeadings": "add_section_headings",
    "enhanceQuotes": "enhance_quotes",
    "optimizeLists": "optimize_lists",
    "enhanceStructure": "enhance_structure",
    "enableReadabilityOptimization": "enable_readability_optimization",
    "enableSEOOptimization": "enable_seo_optimization",
    "enableVisualEnhancement": "enable_visual_enhancement",
    "enableContentAnalysis": "enable_content_analysis",
    "addKeyPoints": "add_key_points",
    "enableAIEnhancement": "enable_ai_enhancement",
}


@dataclass(frozen=True)
class StageOptions:
    """Independent toggles, one per formatter stage. All stages are off by default."""
    add_section_headings: bool = False
    enhance_quotes: bool = False
    optimize_lists: bool = False
    enhance_structure: bool = False
    enable_readability_optimization: bool = False
    enable_seo_optimization: bool = False
    enable_visual_enhancement: bool = False
    enable_content_analysis: bool = False
    add_key_points: bool = False
    enable_ai_enhancement: bool = False

    @classmethod
    def ingestion_defaults(cls, enable_ai_enhancement: bool = False) -> "StageOptions":
        """Options used by the ingestion cycle: every stage on, AI per deployment."""
        return cls(
            add_section_headings=True,
            enhance_quotes=True,
            optimize_lists=True,
            enhance_structure=True,
            enable_readability_optimization=True,
            enable_seo_optimization=True,
            enable_visual_enhancement=True,
            enable_content_analysis=True,
            add_key_points=True,
            enable_ai_enhancement=enable_ai_enhancement,
        )

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "StageOptions":
        """Build options from a mapping of snake_case or camelCase keys.

        Raises:
            ValueError: If a key does not name a stage option.
        """
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = CAMEL_CASE_OPTIONS.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown stage option: {key}")
            values[name] = bool(value)
        return cls(**values)

    def any_enabled(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class ContentAnalysis:
    """Readability and SEO metrics computed over a formatted fragment."""
    readability_score: float
    readability_level: str
    word_count: int
    sentence_count: int
    keywords: tuple[str, ...]
    seo_score: int
    engagement_score: int
    suggestions: tuple[str, ...]


@dataclass(frozen=True)
class FormattedResult:
    """Output of one formatter invocation."""
    content: str
    applied_stages: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    analysis: Optional[ContentAnalysis] = None
