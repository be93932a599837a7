"""Explicit record of who is signed in.

One ``SessionContext`` per client session is threaded through the account
session, the profile client and the use cases, so several sessions can live
in one process without sharing identity.
"""

from __future__ import annotations

from dataclasses import dataclass

from mentor_match.application.exceptions import SignedOutError
from mentor_match.domain.models import ANONYMOUS_USER_ID, User


@dataclass
class SessionContext:
    user: User | None = None
    token: str | None = None

    @property
    def is_signed_in(self) -> bool:
        return self.user is not None

    def current_user_id(self) -> str:
        """Return the signed-in user's id, or the anonymous sentinel."""
        return self.user.id if self.user else ANONYMOUS_USER_ID

    def require_user_id(self) -> str:
        if self.user is None:
            raise SignedOutError("No user is signed in")
        return self.user.id

    def sign_in(self, user: User, token: str) -> None:
        self.user = user
        self.token = token

    def update_user(self, user: User) -> None:
        """Replace cached profile fields; the identity must not change."""
        if self.user is not None and user.id != self.user.id:
            raise ValueError(f"Profile for {user.id} cannot replace signed-in user {self.user.id}")
        self.user = user

    def sign_out(self) -> None:
        self.user = None
        self.token = None
