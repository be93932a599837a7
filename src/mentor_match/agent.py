"""PydanticAI agent and prompts for personalized mentoring content."""

from __future__ import annotations

from openai import AsyncAzureOpenAI
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from mentor_match.config import Settings, get_settings
from mentor_match.domain.models import LearnerProfile
from mentor_match.telemetry import agent_instrumentation

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """\
You write content for a mentor matching app that pairs learners with \
mentors for any skill, technical or not (cooking, painting, gardening, \
programming, ...).

## Rules
- Tailor everything to the learner's chosen skills, level and goals.
- When asked for JSON, return ONLY the JSON value, with exactly the keys \
requested and no surrounding prose.
- When replying as a mentor, answer in 2-4 conversational sentences.
"""


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def _profile_block(profile: LearnerProfile) -> str:
    return (
        f"- Name: {profile.name}\n"
        f"- Skills: {', '.join(profile.skills)}\n"
        f"- Level: {profile.level}\n"
        f"- Location: {profile.location}\n"
        f"- Mode: {profile.mode}\n"
        f"- Bio: {profile.bio}\n"
        f"- Experience: {profile.experience}\n"
        f"- Goals: {profile.goals}\n"
    )


def personalized_content_prompt(profile: LearnerProfile) -> str:
    return (
        "Based on the following user profile, generate personalized content.\n\n"
        f"User Profile:\n{_profile_block(profile)}\n"
        "Please generate:\n"
        "1. A personalized welcome message (max 100 characters)\n"
        "2. A 3-step learning path specific to their skills, level and goals.\n\n"
        "Format the response as JSON with these keys:\n"
        '{"welcomeMessage": "string", "learningPath": ["string", "string", "string"], '
        '"personalizedGreeting": "string"}'
    )


def mentor_response_prompt(user_message: str, mentor_skill: str, learner: LearnerProfile) -> str:
    return (
        f"You are a professional mentor and expert in {mentor_skill}. You are talking with "
        f"{learner.name}, a {learner.level} level student who wants to learn "
        f"{', '.join(learner.skills)}.\n\n"
        f'Student\'s message: "{user_message}"\n\n'
        f"Reply with actionable advice specific to {mentor_skill}, adjusted to their level. "
        "If they ask about scheduling a lesson, offer to help them book a session."
    )


def skill_based_classes_prompt(profile: LearnerProfile) -> str:
    return (
        "Generate 5 personalized class suggestions for this learner.\n\n"
        f"Chosen Skills: {', '.join(profile.skills)}\n"
        f"Level: {profile.level}\n"
        f"Goals: {profile.goals}\n"
        f"Experience: {profile.experience}\n\n"
        "Classes must relate to the chosen skills. Return a JSON array of objects with keys "
        '"id", "title", "instructor", "duration", "level", "skill".'
    )


# ---------------------------------------------------------------------------
# Agent factory
# ---------------------------------------------------------------------------


def create_content_agent(settings: Settings | None = None) -> Agent[None, str]:
    """Create the PydanticAI agent used by the remote content generator.

    Agent runs are traced when observability is enabled.

    Args:
        settings: Optional Settings override (defaults to get_settings()).
    """
    s = settings or get_settings()

    client = AsyncAzureOpenAI(
        api_key=s.azure_openai_api_key,
        azure_endpoint=s.azure_openai_endpoint,
        api_version=s.azure_openai_api_version,
    )

    model = OpenAIChatModel(
        s.azure_openai_chat_deployment,
        provider=OpenAIProvider(openai_client=client),
    )

    return Agent(
        model=model,
        system_prompt=SYSTEM_PROMPT,
        output_type=str,
        instrument=agent_instrumentation(s),
    )
