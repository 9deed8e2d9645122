"""Translation collaborator for the secondary draft language."""

import logging
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)


class Translator(Protocol):
    def translate(self, text: str, target_lang: str) -> Optional[str]:
        """Translate ``text``; None when no translation is available."""
        ...


class NullTranslator:
    """Translator for deployments without a translation service."""

    def translate(self, text: str, target_lang: str) -> Optional[str]:
        return None


class HttpTranslator:
    """Posts ``{"text", "target_lang", "format"}`` to a translation endpoint.

    The endpoint is expected to answer ``{"translation": "..."}``.
    """

    def __init__(self, url: str, timeout: float = 20.0, api_key: str | None = None):
        self.url = url
        self.timeout = timeout
        self.api_key = api_key

    def translate(self, text: str, target_lang: str) -> Optional[str]:
        if not text:
            return ""

        headers = {"User-Agent": "news-sentinel/1.0"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        response = requests.post(
            self.url,
            json={
                "text": text,
                "target_lang": target_lang,
                "format": "html" if "<" in text else "text",
            },
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()

        translation = payload.get("translation") if isinstance(payload, dict) else None
        if not isinstance(translation, str) or not translation.strip():
            logger.debug("Translator returned no %s text", target_lang)
            return None
        return translation
