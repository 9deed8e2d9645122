"""Data models for the clean_content stage."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CleanedFragment:
    """Well-formed HTML body fragment produced by the cleaner.

    Contains only content blocks (headings, paragraphs, lists, quotes, media)
    with inline emphasis; never document-level tags or code-fence markers.
    """
    body_html: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.body_html.strip()

    def __str__(self) -> str:
        return self.body_html
