"""Tests for observability mode selection and instrumentation wiring."""

import sys
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi import FastAPI

from mentor_match import telemetry
from mentor_match.config import Settings


def _settings(observability: str) -> Settings:
    return Settings(_env_file=None, observability=observability)


@pytest.fixture(autouse=True)
def fresh_backends(monkeypatch):
    monkeypatch.setattr(telemetry, "_installed", set())


@pytest.fixture()
def fake_logfire(monkeypatch) -> MagicMock:
    fake = MagicMock()
    monkeypatch.setitem(sys.modules, "logfire", fake)
    return fake


class TestMode:
    @pytest.mark.parametrize(
        "raw,expected",
        [("off", "off"), ("LOGFIRE", "logfire"), (" otel ", "otel"), ("datadog", "off"), ("", "off")],
    )
    def test_normalized(self, raw, expected):
        assert telemetry.observability_mode(_settings(raw)) == expected

    def test_off_installs_nothing(self, fake_logfire):
        assert telemetry.configure_tracing(_settings("off")) == "off"
        assert telemetry.agent_instrumentation(_settings("off")) is None
        fake_logfire.configure.assert_not_called()

    def test_unknown_mode_installs_nothing(self, fake_logfire):
        assert telemetry.agent_instrumentation(_settings("datadog")) is None
        fake_logfire.configure.assert_not_called()


class TestLogfire:
    async def test_http_client_and_app_instrumented(self, fake_logfire):
        settings = _settings("logfire")
        app = FastAPI()

        async with httpx.AsyncClient() as client:
            telemetry.instrument_http_client(client, settings)
            telemetry.instrument_app(app, settings)

            fake_logfire.instrument_httpx.assert_called_once_with(client)
        fake_logfire.instrument_fastapi.assert_called_once_with(app)
        fake_logfire.configure.assert_called_once()

    def test_agent_instrumentation_enabled(self, fake_logfire):
        from pydantic_ai.models.instrumented import InstrumentationSettings

        assert isinstance(telemetry.agent_instrumentation(_settings("logfire")), InstrumentationSettings)


class TestOtel:
    async def test_http_client_instrumented(self, monkeypatch):
        instrumentation = pytest.importorskip("opentelemetry.instrumentation.httpx")
        install = MagicMock()
        monkeypatch.setattr(telemetry, "_install_otel", install)
        instrument_client = MagicMock()
        monkeypatch.setattr(
            instrumentation.HTTPXClientInstrumentor, "instrument_client", instrument_client
        )
        settings = _settings("otel")

        async with httpx.AsyncClient() as client:
            telemetry.instrument_http_client(client, settings)
            telemetry.instrument_http_client(client, settings)

        install.assert_called_once_with(settings)
        assert instrument_client.call_count == 2


class TestWiring:
    def test_content_agent_receives_instrumentation(self):
        from mentor_match.agent import create_content_agent

        settings = Settings(
            _env_file=None,
            observability="off",
            azure_openai_api_key="test-key",
            azure_openai_endpoint="https://test.openai.azure.com/",
        )
        marker = object()
        with (
            patch("mentor_match.agent.agent_instrumentation", return_value=marker),
            patch("mentor_match.agent.Agent") as agent_cls,
        ):
            create_content_agent(settings)

        assert agent_cls.call_args.kwargs["instrument"] is marker

    async def test_client_instruments_profile_http(self):
        from mentor_match.client import build_client

        settings = Settings(_env_file=None, kv_backend="memory", content_generation_enabled=False)
        http = httpx.AsyncClient()
        with patch("mentor_match.client.instrument_http_client") as instrument:
            client = build_client(settings, http_client=http)

        instrument.assert_called_once_with(http, settings)
        assert client.profile_client.http is http
        await http.aclose()
