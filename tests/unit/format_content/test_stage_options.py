"""Tests for format_content.models module."""

from dataclasses import fields

import pytest

from format_content.models import StageOptions


class TestStageOptions:
    def test_all_off_by_default(self) -> None:
        assert not StageOptions().any_enabled()

    def test_ingestion_defaults(self) -> None:
        options = StageOptions.ingestion_defaults()
        enabled = {f.name for f in fields(options) if getattr(options, f.name)}
        assert "enable_ai_enhancement" not in enabled
        assert len(enabled) == 9

    def test_ingestion_defaults_with_ai(self) -> None:
        assert StageOptions.ingestion_defaults(enable_ai_enhancement=True).enable_ai_enhancement


class TestFromDict:
    def test_camel_case_keys(self) -> None:
        options = StageOptions.from_dict({"addSectionHeadings": True, "enableSEOOptimization": 1})
        assert options.add_section_headings is True
        assert options.enable_seo_optimization is True
        assert options.enhance_quotes is False

    def test_snake_case_keys(self) -> None:
        assert StageOptions.from_dict({"enhance_quotes": True}).enhance_quotes

    def test_empty(self) -> None:
        assert StageOptions.from_dict(None) == StageOptions()

    def test_unknown_key_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown stage option"):
            StageOptions.from_dict({"addEmoji": True})
