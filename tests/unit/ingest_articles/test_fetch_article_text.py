"""Tests for ingest_articles.fetch_articles.fetch_article_text module."""

from unittest.mock import patch, Mock

import requests

from ingest_articles.fetch_articles.fetch_article_text import fetch_article_html

PAGE = "<html><head><title>Story</title></head><body><article><p>Content</p></article></body></html>"


@patch("ingest_articles.fetch_articles.fetch_article_text.trafilatura")
@patch("ingest_articles.fetch_articles.fetch_article_text.Document")
@patch("ingest_articles.fetch_articles.fetch_article_text.requests.get")
class TestFetchArticleHtml:
    def test_returns_readability_summary(self, mock_get, mock_doc, mock_traf) -> None:
        mock_get.return_value = Mock(text=PAGE)
        mock_doc.return_value.summary.return_value = "<div><p>Content</p></div>"
        mock_doc.return_value.short_title.return_value = "Story"

        page = fetch_article_html("https://example.com/story")

        assert page.html == "<div><p>Content</p></div>"
        assert page.title == "Story"
        assert page.page_html == PAGE
        mock_doc.return_value.summary.assert_called_once_with(html_partial=True)
        mock_traf.extract.assert_not_called()

    def test_falls_back_to_trafilatura(self, mock_get, mock_doc, mock_traf) -> None:
        mock_get.return_value = Mock(text=PAGE)
        mock_doc.side_effect = Exception("parse failed")
        mock_traf.extract.return_value = "First paragraph.\n  \nSecond paragraph."
        mock_traf.extract_metadata.return_value = Mock(title="Story")

        page = fetch_article_html("https://example.com/story")

        assert page.html == "First paragraph.\n\nSecond paragraph."
        assert page.title == "Story"

    def test_returns_none_when_both_fail(self, mock_get, mock_doc, mock_traf) -> None:
        mock_get.return_value = Mock(text=PAGE)
        mock_doc.return_value.summary.return_value = ""
        mock_traf.extract.return_value = None
        assert fetch_article_html("https://example.com/story") is None

    def test_returns_none_on_download_error(self, mock_get, mock_doc, mock_traf) -> None:
        mock_get.side_effect = requests.ConnectionError("refused")
        assert fetch_article_html("https://example.com/story") is None
        mock_doc.assert_not_called()
