"""Tests for format_content.format_content module."""

from dataclasses import fields, replace
from itertools import combinations
from unittest.mock import Mock

import pytest

from clean_content.clean import clean, needs_cleaning
from clean_content.models import CleanedFragment
from format_content.enhancers import EnhancerUnavailableError
from format_content.format_content import ContentFormatter, format_content
from format_content.models import StageOptions

ARTICLE = (
    "<p>The government said on Monday that the new harbour expansion will double export capacity by 2027.</p>"
    "<p>\"We expect thousands of new jobs for the province,\" said the minister of commerce.</p>"
    "<p>• Port capacity doubles<br>• New rail link<br>• Customs hub</p>"
    "<p>Officials said the project will be financed by a mix of public funds and private investment "
    "from regional partners. Construction is expected to begin early next year after environmental "
    "reviews are complete.</p>"
)
TITLE = "Harbour expansion to double exports"
QUOTED_LONG = (
    "<p>\"We expect thousands of new jobs for the province,\" said the minister. "
    + "The minister said the economy grew by 5% this year. " * 7
    + "</p>"
)
SHORT_RUN = (
    "<p>Officials said the economy grew.</p>\n"
    "<p>The new budget takes effect in March.</p>\n"
    "<p>Markets opened higher on the news.</p>"
)
FORMAT_OPTIONS = [f.name for f in fields(StageOptions) if f.name != "enable_ai_enhancement"]


def _option_sets():
    for size in (1, 2, len(FORMAT_OPTIONS)):
        for names in combinations(FORMAT_OPTIONS, size):
            yield StageOptions(**{name: True for name in names})


class TestStageGating:
    def test_all_options_off_returns_input_unchanged(self) -> None:
        source = "<div>  odd <b>markup</b></div>"
        result = format_content(source, StageOptions())
        assert result.content == source
        assert result.applied_stages == ()

    def test_none_options_means_all_off(self) -> None:
        assert format_content("<p>Body</p>").content == "<p>Body</p>"

    def test_empty_input(self) -> None:
        result = format_content(CleanedFragment(""), StageOptions.ingestion_defaults())
        assert result.content == ""

    def test_no_change_returns_source_string(self) -> None:
        source = "<p>Plain body.</p>"
        result = format_content(source, StageOptions(enhance_quotes=True))
        assert result.content == source
        assert result.applied_stages == ("quotes",)

    def test_key_points_require_content_analysis(self) -> None:
        result = format_content("<p>Body</p>", StageOptions(add_key_points=True))
        assert "key_points" not in result.applied_stages
        assert "key_points: requires enable_content_analysis" in result.warnings

    def test_analysis_only_when_enabled(self) -> None:
        assert format_content("<p>Body text.</p>", StageOptions(enhance_quotes=True)).analysis is None
        result = format_content("<p>Body text.</p>", StageOptions(enable_content_analysis=True))
        assert result.analysis is not None
        assert result.analysis.word_count == 2


class TestExistingHeading:
    def test_background_heading_not_duplicated(self) -> None:
        fragment = clean("```html<h2>Background</h2><p>25% decrease...</p>```")
        options = replace(StageOptions.ingestion_defaults(), add_section_headings=False)

        result = format_content(fragment, options)

        assert result.content.count("<h2") == 1
        assert "<h2>Background</h2>" in result.content

    def test_heading_stage_respects_existing_heading(self) -> None:
        fragment = clean("<h2>Background</h2><p>25% decrease...</p>")
        result = format_content(fragment, StageOptions(add_section_headings=True))
        assert result.content == fragment.body_html


class TestIdempotence:
    def test_ingestion_defaults_reach_fixed_point(self) -> None:
        fragment = clean(ARTICLE)
        options = StageOptions.ingestion_defaults()

        first = format_content(fragment, options, title=TITLE)
        second = format_content(first.content, options, title=TITLE)

        assert second.content == first.content
        assert first.content.count('class="sentinel-heading"') == 1
        assert first.content.count('class="sentinel-key-points"') == 1

    def test_ingestion_defaults_apply_structure(self) -> None:
        result = format_content(clean(ARTICLE), StageOptions.ingestion_defaults(), title=TITLE)
        assert '<ul class="sentinel-list">' in result.content
        assert '<blockquote class="sentinel-quote">' in result.content
        assert '<strong class="sentinel-keyword">expansion</strong>' in result.content


class TestAiEnhancement:
    def test_enhanced_output_is_cleaned_and_marked(self) -> None:
        enhancer = Mock()
        enhancer.enhance.return_value = "```html<p>Enhanced body text.</p>```"
        formatter = ContentFormatter(enhancer)

        result = formatter.format("<p>Body text.</p>", StageOptions(enable_ai_enhancement=True), title="T")

        assert result.content == '<p class="sentinel-enhanced">Enhanced body text.</p>'
        assert result.applied_stages == ("ai_enhancement",)
        enhancer.enhance.assert_called_once_with("<p>Body text.</p>", "T")

    def test_enhanced_content_is_not_enhanced_again(self) -> None:
        enhancer = Mock()
        formatter = ContentFormatter(enhancer)
        source = '<p class="sentinel-enhanced">Enhanced body text.</p>'

        result = formatter.format(source, StageOptions(enable_ai_enhancement=True))

        assert result.content == source
        enhancer.enhance.assert_not_called()

    def test_unavailable_enhancer_skips_stage(self) -> None:
        result = format_content("<p>Body text.</p>", StageOptions(enable_ai_enhancement=True))
        assert result.content == "<p>Body text.</p>"
        assert result.applied_stages == ()
        assert any(w.startswith("ai_enhancement: enhancer unavailable") for w in result.warnings)

    def test_failing_enhancer_skips_stage(self) -> None:
        enhancer = Mock()
        enhancer.enhance.side_effect = RuntimeError("model overloaded")
        result = ContentFormatter(enhancer).format("<p>Body text.</p>", StageOptions(enable_ai_enhancement=True))
        assert result.content == "<p>Body text.</p>"
        assert any("model overloaded" in w for w in result.warnings)

    def test_enhancer_unavailable_error_skips_stage(self) -> None:
        enhancer = Mock()
        enhancer.enhance.side_effect = EnhancerUnavailableError("down")
        result = ContentFormatter(enhancer).format("<p>Body text.</p>", StageOptions(enable_ai_enhancement=True))
        assert "ai_enhancement" not in result.applied_stages

    def test_empty_enhancer_output_skips_stage(self) -> None:
        enhancer = Mock()
        enhancer.enhance.return_value = "```"
        result = ContentFormatter(enhancer).format("<p>Body text.</p>", StageOptions(enable_ai_enhancement=True))
        assert result.content == "<p>Body text.</p>"
        assert "ai_enhancement: enhancer returned no usable content" in result.warnings


class TestFixedPoint:
    def test_long_quoted_paragraph_not_quoted_after_split(self) -> None:
        options = StageOptions(enhance_quotes=True, enable_readability_optimization=True)

        first = format_content(QUOTED_LONG, options)
        second = format_content(first.content, options)

        assert 'class="sentinel-split"' in first.content
        assert "<blockquote" not in first.content
        assert second.content == first.content

    def test_long_quoted_paragraph_with_ingestion_defaults(self) -> None:
        options = StageOptions.ingestion_defaults()

        first = format_content(clean(QUOTED_LONG), options, title="Harbour plan")
        second = format_content(first.content, options, title="Harbour plan")

        assert second.content == first.content
        assert second.content.count("<blockquote") == first.content.count("<blockquote")

    @pytest.mark.parametrize("body", [ARTICLE, QUOTED_LONG, SHORT_RUN])
    def test_every_option_combination_is_idempotent(self, body) -> None:
        fragment = clean(body)
        for options in _option_sets():
            first = format_content(fragment, options, title=TITLE)
            second = format_content(first.content, options, title=TITLE)
            assert second.content == first.content, options

    def test_structure_output_is_clean(self) -> None:
        result = format_content(clean(SHORT_RUN), StageOptions(enhance_structure=True))

        assert result.content.startswith('<section class="sentinel-section"><p>Officials said')
        assert "</p>\n<p>" not in result.content
        assert clean(result.content).body_html == result.content
        assert not needs_cleaning(result.content)

    def test_ingestion_output_is_clean(self) -> None:
        for body in (ARTICLE, QUOTED_LONG, SHORT_RUN):
            result = format_content(clean(body), StageOptions.ingestion_defaults(), title=TITLE)
            assert clean(result.content).body_html == result.content
