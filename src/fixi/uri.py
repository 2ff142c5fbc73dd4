"""Append serialized query pairs onto a base URI."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import quote, urlencode

from .query import QueryPair


def encode_pairs(pairs: Iterable[QueryPair]) -> str:
    # quote (not quote_plus): spaces become %20 and a literal '+' is escaped
    return urlencode(list(pairs), quote_via=quote, safe="")


def add_query(uri: str, pairs: Iterable[QueryPair]) -> str:
    """Return ``uri`` with ``pairs`` appended after any existing query.

    Existing parameters are kept verbatim and in place; nothing is
    deduplicated. A fragment, if present, stays at the end.
    """
    query = encode_pairs(pairs)
    if not query:
        return uri
    base, hash_mark, fragment = uri.partition("#")
    if "?" not in base:
        separator = "?"
    elif base.endswith(("?", "&")):
        separator = ""
    else:
        separator = "&"
    return f"{base}{separator}{query}{hash_mark}{fragment}"


__all__ = ["add_query", "encode_pairs"]
