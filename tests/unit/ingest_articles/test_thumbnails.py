"""Tests for ingest_articles.fetch_articles.thumbnails module."""

from ingest_articles.fetch_articles.thumbnails import find_page_image


class TestFindPageImage:
    def test_og_image(self) -> None:
        page = '<html><head><meta property="og:image" content="https://cdn.example/a.jpg"></head></html>'
        assert find_page_image(page, "https://example.com/story") == "https://cdn.example/a.jpg"

    def test_relative_url_made_absolute(self) -> None:
        page = '<html><head><meta name="twitter:image" content="/b.png"></head></html>'
        assert find_page_image(page, "https://example.com/news/story") == "https://example.com/b.png"

    def test_og_image_wins_over_twitter(self) -> None:
        page = (
            '<html><head><meta name="twitter:image" content="/t.png">'
            '<meta property="og:image" content="/o.png"></head></html>'
        )
        assert find_page_image(page, "https://example.com/") == "https://example.com/o.png"

    def test_data_uri_ignored(self) -> None:
        page = '<html><head><meta property="og:image" content="data:image/png;base64,AAAA"></head></html>'
        assert find_page_image(page, "https://example.com/") is None

    def test_empty_page(self) -> None:
        assert find_page_image("", "https://example.com/") is None
