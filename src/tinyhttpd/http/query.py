"""
=============================================================================
QUERY STRING DECODING
=============================================================================

    "?name=J%C3%B6rg&tag=a&tag=b"
            │
            ▼
    [("name", "Jörg"), ("tag", "a"), ("tag", "b")]

Unlike urllib.parse.parse_qsl this keeps the server's historical rules:

    - a leading '?' is dropped
    - '+' is NOT translated to a space, only %XX escapes are decoded
    - order and duplicate keys are preserved
    - the first segment without '=' stops decoding; the pairs decoded so
      far are returned and everything after it is ignored

    "a=1&bogus&b=2"  ->  [("a", "1")]

=============================================================================
"""

from typing import List, Tuple
from urllib.parse import unquote


def query_to_arguments(query: str) -> List[Tuple[str, str]]:
    """
    Decode a query string into ordered (key, value) pairs.

    Args:
        query: Escaped query, with or without a leading '?'.

    Returns:
        Decoded pairs in input order.
    """
    if query.startswith("?"):
        query = query[1:]

    arguments: List[Tuple[str, str]] = []
    for segment in query.split("&"):
        key, sep, value = segment.partition("=")
        if not sep:
            break
        arguments.append((unquote(key), unquote(value)))

    return arguments
