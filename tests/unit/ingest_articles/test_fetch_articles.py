"""Tests for ingest_articles.fetch_articles.fetch_articles module."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from ingest_articles.fetch_articles.fetch_article_text import ResolvedPage
from ingest_articles.fetch_articles.fetch_articles import SourceFetchError, fetch_candidates, resolve_item
from ingest_articles.models import CandidateItem, SourceFeed

FETCHED_AT = datetime(2024, 1, 2, tzinfo=timezone.utc)
BBC = SourceFeed("BBC", "https://bbc.com/rss")
CNN = SourceFeed("CNN", "https://cnn.com/rss")


def _item(url: str, body: str = "<p>Body</p>", source: str = "BBC") -> CandidateItem:
    return CandidateItem(
        source_url=url, source_name=source, raw_title="Title", raw_body=body, fetched_at=FETCHED_AT
    )


@patch("ingest_articles.fetch_articles.fetch_articles.fetch_rss_articles")
class TestFetchCandidates:
    def test_collects_items_from_all_sources(self, mock_rss) -> None:
        mock_rss.side_effect = [[_item("https://bbc.com/1")], [_item("https://cnn.com/1", source="CNN")]]
        result = fetch_candidates([BBC, CNN])
        assert [i.source_url for i in result] == ["https://bbc.com/1", "https://cnn.com/1"]

    def test_continues_on_source_error(self, mock_rss) -> None:
        mock_rss.side_effect = [Exception("Network error"), [_item("https://cnn.com/1", source="CNN")]]
        result = fetch_candidates([BBC, CNN])
        assert len(result) == 1
        assert result[0].source_name == "CNN"

    def test_all_sources_failing_raises(self, mock_rss) -> None:
        mock_rss.side_effect = Exception("Network error")
        with pytest.raises(SourceFetchError, match="All sources failed"):
            fetch_candidates([BBC, CNN])

    def test_disabled_sources_skipped(self, mock_rss) -> None:
        mock_rss.return_value = []
        fetch_candidates([BBC, SourceFeed("Off", "https://off.example/rss", enabled=False)])
        assert mock_rss.call_count == 1

    def test_no_enabled_sources_is_empty(self, mock_rss) -> None:
        assert fetch_candidates([]) == []
        mock_rss.assert_not_called()

    @patch("ingest_articles.fetch_articles.fetch_articles.resolve_item")
    def test_resolves_short_bodies(self, mock_resolve, mock_rss) -> None:
        short = _item("https://bbc.com/short", body="Teaser")
        full = _item("https://bbc.com/full", body="<p>" + "word " * 60 + "</p>")
        mock_rss.return_value = [short, full]
        mock_resolve.side_effect = lambda item, timeout: item

        fetch_candidates([BBC], resolve_short_bodies=True, min_body_chars=200)

        mock_resolve.assert_called_once()
        assert mock_resolve.call_args[0][0] is short


@patch("ingest_articles.fetch_articles.fetch_articles.fetch_article_html")
class TestResolveItem:
    def test_replaces_body_and_fills_thumbnail(self, mock_fetch) -> None:
        page_html = '<html><head><meta property="og:image" content="/img/a.jpg"></head><body></body></html>'
        mock_fetch.return_value = ResolvedPage(
            url="https://bbc.com/1", title="T", html="<p>Full</p>", page_html=page_html
        )
        result = resolve_item(_item("https://bbc.com/1", body="Teaser"))
        assert result.raw_body == "<p>Full</p>"
        assert result.thumbnail_url == "https://bbc.com/img/a.jpg"

    def test_keeps_item_when_page_unavailable(self, mock_fetch) -> None:
        mock_fetch.return_value = None
        item = _item("https://bbc.com/1", body="Teaser")
        assert resolve_item(item) is item
