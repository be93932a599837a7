"""Account persistence for the account service.

Stores users and their profiles in a dedicated SQLite file.  Password hashes
never leave this module except through ``get_credentials``.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger

from mentor_match.domain.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    skills TEXT DEFAULT '[]',
    level TEXT DEFAULT 'Beginner' CHECK(level IN ('Beginner', 'Intermediate', 'Expert')),
    location TEXT DEFAULT 'Remote',
    mode TEXT DEFAULT 'Online' CHECK(mode IN ('Online', 'In-person', 'Hybrid')),
    avatar_color TEXT DEFAULT '#A5B5FF',
    bio TEXT,
    experience TEXT,
    goals TEXT,
    personalized_content TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_users_email ON users(email);
"""

# Profile fields that may be changed after registration, and their columns
PROFILE_COLUMNS = {
    "skills": "skills",
    "level": "level",
    "location": "location",
    "mode": "mode",
    "bio": "bio",
    "experience": "experience",
    "goals": "goals",
    "personalized_content": "personalized_content",
}
_JSON_COLUMNS = {"skills", "personalized_content"}


def _utcnow() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class EmailTakenError(ValueError):
    """Raised when registering an email that already has an account."""


class UserStore:
    """CRUD operations for accounts stored in a dedicated SQLite file."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open (or create) the database and ensure the schema exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.executescript(_SCHEMA_SQL)
        self.conn.commit()
        logger.info("User DB ready at {}", self.db_path)

    def close(self) -> None:
        if self.conn:
            self.conn.close()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, password_hash: str) -> User:
        """Create a new account and return its profile.

        Raises:
            EmailTakenError: If the (normalized) email is already registered.
        """
        assert self.conn
        user_id = uuid.uuid4().hex
        now = _utcnow()
        try:
            self.conn.execute(
                "INSERT INTO users (id, name, email, password_hash, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (user_id, name.strip(), normalize_email(email), password_hash, now),
            )
        except sqlite3.IntegrityError as exc:
            raise EmailTakenError(email) from exc
        self.conn.commit()
        logger.info("Created user {} ({})", user_id, normalize_email(email))
        user = self.get_user(user_id)
        assert user is not None
        return user

    def get_user(self, user_id: str) -> User | None:
        assert self.conn
        row = self.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_credentials(self, email: str) -> tuple[User, str] | None:
        """Return the profile and password hash for *email*, if registered."""
        assert self.conn
        row = self.conn.execute(
            "SELECT * FROM users WHERE email = ?", (normalize_email(email),)
        ).fetchone()
        if not row:
            return None
        return self._row_to_user(row), row["password_hash"]

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> User | None:
        """Set the given profile fields; unknown and ``None`` fields are ignored.

        Returns the updated profile, or None if the user does not exist.
        """
        assert self.conn
        if self.get_user(user_id) is None:
            return None

        assignments: list[str] = []
        values: list[Any] = []
        for field_name, value in fields.items():
            column = PROFILE_COLUMNS.get(field_name)
            if column is None or value is None:
                continue
            assignments.append(f"{column} = ?")
            values.append(json.dumps(value) if column in _JSON_COLUMNS else value)

        if assignments:
            self.conn.execute(
                f"UPDATE users SET {', '.join(assignments)} WHERE id = ?",
                (*values, user_id),
            )
            self.conn.commit()
        return self.get_user(user_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        skills = row["skills"] or "[]"
        content = row["personalized_content"]
        try:
            skills = json.loads(skills)
        except (json.JSONDecodeError, TypeError):
            skills = []
        if content:
            try:
                content = json.loads(content)
            except (json.JSONDecodeError, TypeError):
                content = None
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            skills=skills,
            level=row["level"],
            location=row["location"],
            mode=row["mode"],
            avatar_color=row["avatar_color"],
            bio=row["bio"],
            experience=row["experience"],
            goals=row["goals"],
            personalized_content=content,
            created_at=row["created_at"],
        )
