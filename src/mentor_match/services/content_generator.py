"""Personalized text content: remote agent, deterministic templates, fallback.

``FallbackContentGenerator`` composes the two so callers always get
something to render: any failure of the remote call (transport errors,
model errors, malformed JSON) resolves to the template output.
"""

from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger
from pydantic import TypeAdapter, ValidationError
from pydantic_ai import Agent

from mentor_match import agent as prompts
from mentor_match.application.exceptions import ContentGenerationError
from mentor_match.domain.models import ClassSuggestion, LearnerProfile, PersonalizedContent
from mentor_match.domain.protocols import IContentGenerator

_OBJECT_BLOCK = re.compile(r"\{[\s\S]*\}")
_ARRAY_BLOCK = re.compile(r"\[[\s\S]*\]")
_FENCE = re.compile(r"^```[A-Za-z0-9_-]*\s*|\s*```$")

MIN_REPLY_LENGTH = 10


def _extract_json(text: str, pattern: re.Pattern[str]) -> Any:
    """Parse the first JSON block matching *pattern* out of an LLM reply."""
    match = pattern.search(_FENCE.sub("", text.strip()))
    if not match:
        raise ContentGenerationError("No JSON found in model output")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ContentGenerationError(f"Malformed JSON in model output: {exc}") from exc


def _skill(profile: LearnerProfile, index: int, default: str) -> str:
    return profile.skills[index] if len(profile.skills) > index and profile.skills[index] else default


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

# keyword -> (fundamentals, advanced, workshop, masterclass)
_SKILL_TITLES: list[tuple[tuple[str, ...], tuple[str, str, str, str]]] = [
    (
        ("cooking", "culinary"),
        ("Basic Cooking Techniques", "Advanced Culinary Arts", "Cooking Workshop", "Cooking Masterclass"),
    ),
    (
        ("painting", "art"),
        ("Painting Fundamentals", "Advanced Painting Techniques", "Art Workshop", "Painting Masterclass"),
    ),
    (
        ("gardening", "plant"),
        ("Gardening Basics", "Advanced Gardening", "Garden Workshop", "Gardening Masterclass"),
    ),
    (
        ("javascript", "programming"),
        ("JavaScript Fundamentals", "Advanced JavaScript", "Coding Workshop", "JavaScript Masterclass"),
    ),
]
_CLASS_TYPES = ("fundamentals", "advanced", "workshop", "masterclass")


def skill_class_title(skill: str, class_type: str) -> str:
    """Title for a class of *class_type* about *skill*."""
    index = _CLASS_TYPES.index(class_type)
    lowered = skill.lower()
    for keywords, titles in _SKILL_TITLES:
        if any(k in lowered for k in keywords):
            return titles[index]
    generic = (f"{skill} Fundamentals", f"Advanced {skill}", f"{skill} Workshop", f"{skill} Masterclass")
    return generic[index]


class TemplateContentGenerator:
    """Deterministic content derived from the learner's first skills."""

    async def generate_personalized_content(self, profile: LearnerProfile) -> PersonalizedContent:
        primary = _skill(profile, 0, "Learning")
        secondary = _skill(profile, 1, "Development")
        goals = (profile.goals or "learning").lower()
        return PersonalizedContent(
            welcome_message=f"Welcome to your personalized learning journey, {profile.name}!",
            learning_path=[
                f"Master {primary} fundamentals and core concepts",
                f"Build practical projects combining {primary} and {secondary}",
                f"Apply your skills in real-world {goals} scenarios",
            ],
            personalized_greeting=f"Welcome, {profile.name}!",
        )

    async def generate_mentor_response(
        self, user_message: str, mentor_skill: str, learner: LearnerProfile
    ) -> str:
        return (
            f"That's a great question about {mentor_skill}! Let me help you with that. "
            f"Based on your {learner.level} level, I'd recommend focusing on the fundamentals "
            "first. What specific aspect would you like to explore further?"
        )

    async def generate_skill_based_classes(self, profile: LearnerProfile) -> list[ClassSuggestion]:
        primary = _skill(profile, 0, "Learning")
        secondary = _skill(profile, 1, "Development")
        third = _skill(profile, 2, "Growth")
        level = profile.level
        rows = [
            ("1", skill_class_title(primary, "fundamentals"), f"{primary} Expert", "2 hours", level, primary),
            ("2", skill_class_title(secondary, "advanced"), f"{secondary} Mentor", "3 hours", level, secondary),
            ("3", skill_class_title(primary, "workshop"), f"{primary} Specialist", "4 hours", level, primary),
            ("4", skill_class_title(third, "masterclass"), f"{third} Professional", "1.5 hours", "All Levels", third),
            ("5", f"{primary} Best Practices", f"{primary} Professional", "2.5 hours", level, primary),
        ]
        return [
            ClassSuggestion(id=i, title=t, instructor=who, duration=d, level=lv, skill=s)
            for i, t, who, d, lv, s in rows
        ]


# ---------------------------------------------------------------------------
# Remote (PydanticAI agent)
# ---------------------------------------------------------------------------


class RemoteContentGenerator:
    """Content produced by a PydanticAI agent.

    Raises ``ContentGenerationError`` when the output cannot be used; model
    and transport errors propagate unchanged.
    """

    def __init__(self, agent: Agent[None, str]) -> None:
        self.agent = agent

    async def _run(self, prompt: str) -> str:
        result = await self.agent.run(prompt)
        return result.output or ""

    async def generate_personalized_content(self, profile: LearnerProfile) -> PersonalizedContent:
        text = await self._run(prompts.personalized_content_prompt(profile))
        data = _extract_json(text, _OBJECT_BLOCK)
        try:
            return PersonalizedContent.model_validate(data)
        except ValidationError as exc:
            raise ContentGenerationError(f"Unexpected personalized content shape: {exc}") from exc

    async def generate_mentor_response(
        self, user_message: str, mentor_skill: str, learner: LearnerProfile
    ) -> str:
        text = await self._run(prompts.mentor_response_prompt(user_message, mentor_skill, learner))
        reply = text.strip().strip("\"'").strip()
        if len(reply) <= MIN_REPLY_LENGTH:
            raise ContentGenerationError("Mentor reply too short")
        return reply

    async def generate_skill_based_classes(self, profile: LearnerProfile) -> list[ClassSuggestion]:
        text = await self._run(prompts.skill_based_classes_prompt(profile))
        data = _extract_json(text, _ARRAY_BLOCK)
        try:
            return TypeAdapter(list[ClassSuggestion]).validate_python(data)
        except ValidationError as exc:
            raise ContentGenerationError(f"Unexpected class list shape: {exc}") from exc


# ---------------------------------------------------------------------------
# Fallback decorator
# ---------------------------------------------------------------------------


class FallbackContentGenerator:
    """Try *primary*; on any failure, answer from *fallback*."""

    def __init__(self, primary: IContentGenerator, fallback: IContentGenerator) -> None:
        self.primary = primary
        self.fallback = fallback

    async def generate_personalized_content(self, profile: LearnerProfile) -> PersonalizedContent:
        try:
            return await self.primary.generate_personalized_content(profile)
        except Exception as exc:
            logger.warning("Personalized content fell back to template | {}: {}", type(exc).__name__, exc)
            return await self.fallback.generate_personalized_content(profile)

    async def generate_mentor_response(
        self, user_message: str, mentor_skill: str, learner: LearnerProfile
    ) -> str:
        try:
            return await self.primary.generate_mentor_response(user_message, mentor_skill, learner)
        except Exception as exc:
            logger.warning("Mentor reply fell back to template | {}: {}", type(exc).__name__, exc)
            return await self.fallback.generate_mentor_response(user_message, mentor_skill, learner)

    async def generate_skill_based_classes(self, profile: LearnerProfile) -> list[ClassSuggestion]:
        try:
            return await self.primary.generate_skill_based_classes(profile)
        except Exception as exc:
            logger.warning("Class suggestions fell back to template | {}: {}", type(exc).__name__, exc)
            return await self.fallback.generate_skill_based_classes(profile)
