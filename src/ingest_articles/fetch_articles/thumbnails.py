"""Thumbnail discovery from article page metadata."""

import logging
from typing import Optional
from urllib.parse import urljoin

from lxml import etree
from lxml import html as lxml_html

logger = logging.getLogger(__name__)

# Checked in order; first non-empty value wins
IMAGE_XPATHS = [
    "//meta[@property='og:image']/@content",
    "//meta[@property='og:image:url']/@content",
    "//meta[@property='og:image:secure_url']/@content",
    "//meta[@name='twitter:image']/@content",
    "//link[@rel='image_src']/@href",
]


def find_page_image(page_html: str, page_url: str) -> Optional[str]:
    """Return the absolute URL of the page's preview image, if declared."""
    if not page_html:
        return None
    try:
        tree = lxml_html.fromstring(page_html)
    except (ValueError, etree.ParserError) as e:
        logger.debug("Could not parse page %s: %s", page_url, e)
        return None

    for xpath in IMAGE_XPATHS:
        for value in tree.xpath(xpath):
            value = value.strip()
            if value and not value.startswith("data:"):
                return urljoin(page_url, value)
    return None

