# backend/rsvp_api/services/names.py

import re

# The ECMAScript \s set. str.isspace() also counts
# the \x1c-\x1f separators and \x85, which must be dropped, not turned into spaces.
_WHITESPACE = "\t\n\x0b\x0c\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
_WHITESPACE_RUN = re.compile(f"[{_WHITESPACE}]+")
_IS_WHITESPACE = re.compile(f"[{_WHITESPACE}]")


def _keep(ch: str) -> bool:
    # Unicode letters and numbers (any script) plus whitespace survive
    return ch.isalpha() or ch.isnumeric() or bool(_IS_WHITESPACE.match(ch))


def normalize_name(name: str) -> str:
    """
    Canonical lookup key for a display name.

    Lowercases, drops everything that is not a letter, digit or whitespace,
    then trims and collapses whitespace runs to one space, so names that differ
    only in case, punctuation or spacing share a key:

        >>> normalize_name("The Smith Family!")
        'the smith family'
        >>> normalize_name("  the   smith family ")
        'the smith family'

    Trimming happens last so the result is stable under re-normalization.
    """
    lowered = (name or "").lower()
    kept = "".join(ch for ch in lowered if _keep(ch))
    return _WHITESPACE_RUN.sub(" ", kept).strip(" ")
