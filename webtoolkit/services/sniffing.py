"""
Content-type sniffing from a file's leading bytes (libmagic via python-magic).

The declared file name plays no part; only the bytes do.
"""

import logging

import magic

from webtoolkit.core.config import SNIFF_LEN

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def detect_content_type(data: bytes) -> str:
    """
    Return the MIME type libmagic reports for the first SNIFF_LEN bytes of data.

    If libmagic cannot classify the buffer the result is
    application/octet-stream, which an allow-list then rejects unless it
    names that type.
    """
    head = bytes(data[:SNIFF_LEN])
    try:
        mime = magic.from_buffer(head, mime=True)
    except magic.MagicException as exc:
        logger.warning("[sniffing:detect_content_type] libmagic failed: %s", exc)
        return DEFAULT_CONTENT_TYPE
    return mime or DEFAULT_CONTENT_TYPE
