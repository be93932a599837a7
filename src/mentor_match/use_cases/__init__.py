"""Use-case layer: business logic decoupled from any UI or transport."""

from mentor_match.use_cases.account import AccountSession, AuthState
from mentor_match.use_cases.chat import MentorChatUseCase
