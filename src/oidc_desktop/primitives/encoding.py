"""URL and form encoding helpers.

Both encoders keep the caller's parameter order so request bodies and
authorization URLs are deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import quote, urlencode

CHARSET = "utf-8"

FormPairs = Iterable[tuple[str, str]]


def encode_form(pairs: FormPairs) -> str:
    """Encode pairs as an application/x-www-form-urlencoded body.

    Spaces become ``+`` and every other reserved character is
    percent-encoded as UTF-8.
    """
    return urlencode(list(pairs), encoding=CHARSET)


def encode_query(pairs: FormPairs) -> str:
    """Encode pairs as a URL query string.

    Unlike form bodies, spaces become ``%20``.
    """
    return urlencode(list(pairs), quote_via=quote, encoding=CHARSET)
