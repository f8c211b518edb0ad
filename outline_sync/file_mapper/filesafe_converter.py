"""Filesafe slug conversion for document titles.

Titles become lowercase, ASCII, hyphen-separated slugs that are safe on
every file system and stable across runs.
"""

import re
import unicodedata

FALLBACK_SLUG = "untitled"


class FilesafeConverter:
    """Converts document titles to filesafe names.

    Conversion rules:
    - Unicode is decomposed (NFKD) and reduced to ASCII
    - Apostrophes are dropped ("Don't" -> "dont")
    - Every other run of non-alphanumeric characters -> single hyphen
    - Leading/trailing hyphens are trimmed
    - Result is lowercased; an empty result becomes "untitled"

    Examples:
        - "Customer Feedback" -> "customer-feedback"
        - "API Reference: Getting Started" -> "api-reference-getting-started"
        - "Café & Crème" -> "cafe-creme"
    """

    @staticmethod
    def title_to_slug(title: str) -> str:
        """Convert a document title to a filesafe slug.

        Examples:
            >>> FilesafeConverter.title_to_slug("Q&A Session")
            'q-a-session'
        """
        normalized = unicodedata.normalize('NFKD', title)
        ascii_title = normalized.encode('ascii', 'ignore').decode('ascii')
        ascii_title = ascii_title.replace("'", '')
        slug = re.sub(r'[^A-Za-z0-9]+', '-', ascii_title).strip('-').lower()
        return slug or FALLBACK_SLUG

