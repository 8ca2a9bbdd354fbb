"""
=============================================================================
STATUS REASON PHRASES
=============================================================================

The status line of every response is

    HTTP/1.1 200 OK
             ─── ──
              │   └── Reason phrase (looked up here)
              └────── Status code (chosen by the handler)

The table starts deliberately small. Codes without an entry are sent
with the placeholder phrase "-", which clients ignore:

    HTTP/1.1 201 -

Extend it once at startup with register_reason().

=============================================================================
"""

from typing import Dict


UNKNOWN_REASON = "-"

REASON_PHRASES: Dict[int, str] = {
    200: "OK",
    404: "Not Found",
}


def reason_phrase(code: int) -> str:
    """Get the reason phrase for a status code, or "-" if unknown."""
    return REASON_PHRASES.get(int(code), UNKNOWN_REASON)


def register_reason(code: int, phrase: str) -> None:
    """
    Add or replace a reason phrase.

    Example:
        register_reason(201, "Created")
    """
    if not 100 <= int(code) <= 999:
        raise ValueError(f"Invalid status code: {code}")
    if "\r" in phrase or "\n" in phrase:
        raise ValueError("Reason phrase must not contain line breaks")
    REASON_PHRASES[int(code)] = phrase
