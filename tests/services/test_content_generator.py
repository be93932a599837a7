"""Tests for template, remote and fallback content generators."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from mentor_match.application.exceptions import ContentGenerationError
from mentor_match.domain.models import LearnerProfile, PersonalizedContent
from mentor_match.domain.protocols import IContentGenerator
from mentor_match.services.content_generator import (
    FallbackContentGenerator,
    RemoteContentGenerator,
    TemplateContentGenerator,
    skill_class_title,
)


@pytest.fixture()
def learner() -> LearnerProfile:
    return LearnerProfile(
        name="Alice",
        skills=["Cooking", "Painting"],
        level="Intermediate",
        goals="Career change",
    )


def _agent_returning(*outputs: str) -> MagicMock:
    agent = MagicMock()
    agent.run = AsyncMock(side_effect=[SimpleNamespace(output=o) for o in outputs])
    return agent


class TestTemplates:
    async def test_personalized_content(self, learner):
        content = await TemplateContentGenerator().generate_personalized_content(learner)
        assert content.welcome_message == "Welcome to your personalized learning journey, Alice!"
        assert content.learning_path == [
            "Master Cooking fundamentals and core concepts",
            "Build practical projects combining Cooking and Painting",
            "Apply your skills in real-world career change scenarios",
        ]
        assert content.personalized_greeting == "Welcome, Alice!"

    async def test_personalized_content_defaults(self):
        profile = LearnerProfile(name="Bo")
        content = await TemplateContentGenerator().generate_personalized_content(profile)
        assert content.learning_path[1] == "Build practical projects combining Learning and Development"
        assert content.learning_path[2] == "Apply your skills in real-world learning scenarios"

    async def test_mentor_response_mentions_skill_and_level(self, learner):
        reply = await TemplateContentGenerator().generate_mentor_response(
            "How do I sear?", "Cooking", learner
        )
        assert "Cooking" in reply
        assert "Intermediate" in reply

    async def test_five_classes(self, learner):
        classes = await TemplateContentGenerator().generate_skill_based_classes(learner)
        assert [c.id for c in classes] == ["1", "2", "3", "4", "5"]
        assert classes[0].title == "Basic Cooking Techniques"
        assert classes[1].title == "Advanced Painting Techniques"
        assert classes[3].skill == "Growth"
        assert classes[3].level == "All Levels"

    @pytest.mark.parametrize(
        "skill,class_type,expected",
        [
            ("Culinary arts", "advanced", "Advanced Culinary Arts"),
            ("Plant care", "workshop", "Garden Workshop"),
            ("JavaScript", "masterclass", "JavaScript Masterclass"),
            ("Chess", "fundamentals", "Chess Fundamentals"),
        ],
    )
    def test_skill_class_title(self, skill, class_type, expected):
        assert skill_class_title(skill, class_type) == expected

    def test_implements_protocol(self):
        assert isinstance(TemplateContentGenerator(), IContentGenerator)


class TestRemote:
    async def test_parses_fenced_json(self, learner):
        agent = _agent_returning(
            '```json\n{"welcomeMessage": "Hi Alice", "learningPath": ["a", "b", "c"], '
            '"personalizedGreeting": "Hey"}\n```'
        )
        content = await RemoteContentGenerator(agent).generate_personalized_content(learner)
        assert content == PersonalizedContent(
            welcome_message="Hi Alice", learning_path=["a", "b", "c"], personalized_greeting="Hey"
        )
        prompt = agent.run.await_args.args[0]
        assert "Cooking, Painting" in prompt

    async def test_malformed_json_raises(self, learner):
        agent = _agent_returning("Sure! {welcomeMessage: oops")
        with pytest.raises(ContentGenerationError):
            await RemoteContentGenerator(agent).generate_personalized_content(learner)

    async def test_no_json_raises(self, learner):
        agent = _agent_returning("I cannot help with that.")
        with pytest.raises(ContentGenerationError):
            await RemoteContentGenerator(agent).generate_skill_based_classes(learner)

    async def test_wrong_shape_raises(self, learner):
        agent = _agent_returning('[{"id": "1"}]')
        with pytest.raises(ContentGenerationError):
            await RemoteContentGenerator(agent).generate_skill_based_classes(learner)

    async def test_classes_parsed(self, learner):
        agent = _agent_returning(
            'Here you go: [{"id": "1", "title": "Knife Skills", "instructor": "Chef", '
            '"duration": "2 hours", "level": "Intermediate", "skill": "Cooking"}]'
        )
        [suggestion] = await RemoteContentGenerator(agent).generate_skill_based_classes(learner)
        assert suggestion.title == "Knife Skills"

    async def test_mentor_reply_strips_quotes(self, learner):
        agent = _agent_returning('"Start by heating the pan well before adding oil."')
        reply = await RemoteContentGenerator(agent).generate_mentor_response(
            "How do I sear?", "Cooking", learner
        )
        assert reply == "Start by heating the pan well before adding oil."

    async def test_short_mentor_reply_raises(self, learner):
        agent = _agent_returning("  'ok'  ")
        with pytest.raises(ContentGenerationError):
            await RemoteContentGenerator(agent).generate_mentor_response("hi", "Cooking", learner)


class TestFallback:
    async def test_primary_result_used(self, learner):
        primary = MagicMock()
        primary.generate_mentor_response = AsyncMock(return_value="A detailed remote answer")
        generator = FallbackContentGenerator(primary, TemplateContentGenerator())
        reply = await generator.generate_mentor_response("hi", "Cooking", learner)
        assert reply == "A detailed remote answer"

    async def test_transport_error_falls_back(self, learner):
        agent = MagicMock()
        agent.run = AsyncMock(side_effect=ConnectionError("offline"))
        generator = FallbackContentGenerator(
            RemoteContentGenerator(agent), TemplateContentGenerator()
        )

        content = await generator.generate_personalized_content(learner)
        classes = await generator.generate_skill_based_classes(learner)
        reply = await generator.generate_mentor_response("hi", "Cooking", learner)

        assert content.personalized_greeting == "Welcome, Alice!"
        assert len(classes) == 5
        assert reply.startswith("That's a great question about Cooking!")

    async def test_malformed_output_falls_back(self, learner):
        agent = _agent_returning("not json at all")
        generator = FallbackContentGenerator(
            RemoteContentGenerator(agent), TemplateContentGenerator()
        )
        content = await generator.generate_personalized_content(learner)
        assert content.welcome_message.startswith("Welcome to your personalized learning journey")
