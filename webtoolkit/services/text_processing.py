"""
Text processing helpers: slugs for URLs and file names.
"""

import re

from webtoolkit.core.errors import EmptyInputError, InvalidResultError

_NON_SLUG_RUN = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """
    Convert arbitrary text to a lowercase, hyphen-separated slug.

    Every run of characters outside [a-z0-9] (punctuation, whitespace,
    non-Latin letters) collapses to one hyphen; leading and trailing hyphens
    are dropped.

    Raises:
        EmptyInputError: If text is empty.
        InvalidResultError: If nothing is left after normalization.
    """
    if not text:
        raise EmptyInputError()
    slug = _NON_SLUG_RUN.sub("-", text.lower()).strip("-")
    if not slug:
        raise InvalidResultError(text)
    return slug
