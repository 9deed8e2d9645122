"""Text enhancement capability used by the AI stage of the formatter."""

import logging
from typing import Protocol

import requests

logger = logging.getLogger(__name__)


class EnhancerUnavailableError(Exception):
    """Raised when the text enhancer cannot produce a result."""


class TextEnhancer(Protocol):
    def enhance(self, html: str, title: str = "") -> str:
        """Return an enhanced version of ``html``.

        Raises:
            EnhancerUnavailableError: If the enhancer cannot be reached.
        """
        ...


class NullTextEnhancer:
    """Enhancer for deployments without an enhancement service."""

    def enhance(self, html: str, title: str = "") -> str:
        raise EnhancerUnavailableError("No text enhancer configured")


class HttpTextEnhancer:
    """Enhancer backed by an HTTP endpoint accepting ``{"html", "title"}`` JSON."""

    def __init__(self, url: str, timeout: float = 30.0, api_key: str | None = None):
        self.url = url
        self.timeout = timeout
        self.api_key = api_key

    def enhance(self, html: str, title: str = "") -> str:
        headers = {"User-Agent": "news-sentinel/1.0"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = requests.post(
                self.url,
                json={"html": html, "title": title},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise EnhancerUnavailableError(f"Enhancer request failed: {e}") from e

        enhanced = payload.get("html") if isinstance(payload, dict) else None
        if not enhanced or not isinstance(enhanced, str):
            raise EnhancerUnavailableError("Enhancer returned no content")

        logger.debug("Enhancer returned %d chars for %d chars input", len(enhanced), len(html))
        return enhanced
