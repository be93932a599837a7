"""Per-user storage key derivation.

Keys have the layout ``mm:<user>:<kind>[:<qualifier>...]``.  Every component
is percent-encoded with no safe characters, so no component can contain the
``:`` separator.  The user prefix ``mm:<user>:`` is therefore unique per user
and is never a prefix of another user's key, which is what makes bulk
deletion by prefix scan safe.
"""

from __future__ import annotations

from enum import Enum
from urllib.parse import quote

from mentor_match.domain.models import ANONYMOUS_USER_ID

ROOT = "mm"
SEPARATOR = ":"

# Device-level record of the signed-in account.  User keys all start with
# "mm:", so this key lies outside every user prefix.
AUTH_RECORD_KEY = f"{ROOT}.auth"


class DataKind(str, Enum):
    TRANSCRIPT = "transcript"
    SESSION_INDEX = "sessions"
    LESSON_LIST = "lessons"
    CLASS_LIST = "classes"


_QUALIFIER_ARITY = {
    DataKind.TRANSCRIPT: 2,
    DataKind.SESSION_INDEX: 0,
    DataKind.LESSON_LIST: 0,
    DataKind.CLASS_LIST: 0,
}


def _encode(component: str) -> str:
    return quote(component, safe="")


def normalize_user_id(user_id: str | None) -> str:
    """Map a missing identity to the anonymous sentinel."""
    return user_id or ANONYMOUS_USER_ID


def user_prefix(user_id: str | None) -> str:
    """Prefix shared by every key that belongs to *user_id*."""
    return f"{ROOT}{SEPARATOR}{_encode(normalize_user_id(user_id))}{SEPARATOR}"


def kind_prefix(kind: DataKind, user_id: str | None) -> str:
    """Prefix shared by every key of *kind* that belongs to *user_id*."""
    return f"{user_prefix(user_id)}{kind.value}{SEPARATOR}"


def key(kind: DataKind, user_id: str | None, *qualifiers: str) -> str:
    """Derive the storage key for *kind* owned by *user_id*.

    ``TRANSCRIPT`` takes ``(mentor_name, mentor_skill)``; the other kinds
    take no qualifiers.
    """
    expected = _QUALIFIER_ARITY[kind]
    if len(qualifiers) != expected:
        raise ValueError(f"{kind.value} keys take {expected} qualifier(s), got {len(qualifiers)}")
    parts = [ROOT, _encode(normalize_user_id(user_id)), kind.value]
    parts.extend(_encode(q) for q in qualifiers)
    return SEPARATOR.join(parts)


def transcript_key(user_id: str | None, mentor_name: str, mentor_skill: str) -> str:
    return key(DataKind.TRANSCRIPT, user_id, mentor_name, mentor_skill)


def session_index_key(user_id: str | None) -> str:
    return key(DataKind.SESSION_INDEX, user_id)


def lesson_list_key(user_id: str | None) -> str:
    return key(DataKind.LESSON_LIST, user_id)


def class_list_key(user_id: str | None) -> str:
    return key(DataKind.CLASS_LIST, user_id)
