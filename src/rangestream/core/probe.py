from __future__ import annotations
import logging

from .model import MetadataParseError, RangesNotSupportedError

LOG = logging.getLogger("rangestream.core.probe")

ACCEPT_RANGES_TOKEN = "bytes"


def probe(client) -> int:
    """Check that ``client``'s resource accepts byte ranges and return its length.

    Issues exactly one metadata request. Raises ``RangesNotSupportedError``
    when ``Accept-Ranges`` is missing or is not ``bytes``, and
    ``MetadataParseError`` when ``Content-Length`` is missing or not a
    non-negative integer.
    """
    response = client.probe_metadata()

    accept_ranges = response.header("Accept-Ranges")
    if accept_ranges is None or accept_ranges.strip().lower() != ACCEPT_RANGES_TOKEN:
        raise RangesNotSupportedError(
            f"Server does not support byte ranges (Accept-Ranges: {accept_ranges!r})")

    content_length = response.header("Content-Length")
    if content_length is None:
        raise MetadataParseError("Probe response has no Content-Length header")
    digits = content_length.strip()
    if not (digits.isascii() and digits.isdigit()):
        raise MetadataParseError(f"Unparseable Content-Length: {content_length!r}")
    length = int(digits)

    LOG.debug("probe: %d bytes, ranges supported", length)
    return length
