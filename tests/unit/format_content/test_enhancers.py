"""Tests for format_content.enhancers module."""

from unittest.mock import Mock, patch

import pytest
import requests

from format_content.enhancers import EnhancerUnavailableError, HttpTextEnhancer, NullTextEnhancer


class TestNullTextEnhancer:
    def test_always_unavailable(self) -> None:
        with pytest.raises(EnhancerUnavailableError):
            NullTextEnhancer().enhance("<p>x</p>")


@patch("format_content.enhancers.requests.post")
class TestHttpTextEnhancer:
    def test_returns_enhanced_html(self, mock_post) -> None:
        response = Mock()
        response.json.return_value = {"html": "<p>Better</p>"}
        mock_post.return_value = response

        enhancer = HttpTextEnhancer("https://enhancer.local/v1", timeout=5, api_key="secret")
        assert enhancer.enhance("<p>Good</p>", title="T") == "<p>Better</p>"

        _, kwargs = mock_post.call_args
        assert kwargs["json"] == {"html": "<p>Good</p>", "title": "T"}
        assert kwargs["timeout"] == 5
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_request_error_is_unavailable(self, mock_post) -> None:
        mock_post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(EnhancerUnavailableError):
            HttpTextEnhancer("https://enhancer.local/v1").enhance("<p>x</p>")

    def test_empty_payload_is_unavailable(self, mock_post) -> None:
        response = Mock()
        response.json.return_value = {}
        mock_post.return_value = response
        with pytest.raises(EnhancerUnavailableError, match="no content"):
            HttpTextEnhancer("https://enhancer.local/v1").enhance("<p>x</p>")

    def test_invalid_json_is_unavailable(self, mock_post) -> None:
        response = Mock()
        response.json.side_effect = ValueError("not json")
        mock_post.return_value = response
        with pytest.raises(EnhancerUnavailableError):
            HttpTextEnhancer("https://enhancer.local/v1").enhance("<p>x</p>")
