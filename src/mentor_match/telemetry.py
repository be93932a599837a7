"""Tracing for the account service and the client layer.

``OBSERVABILITY`` selects the backend for every traced component:

- ``"logfire"``: Pydantic Logfire (set ``LOGFIRE_TOKEN``)
- ``"otel"``: OpenTelemetry SDK exporting over OTLP HTTP
- ``"off"``: nothing is traced (default)

The backend is installed once per process, the first time something asks
to be traced. The FastAPI app, the profile client's ``httpx`` client and the
content agent then attach to it. Both backends ship in the ``observability``
extra and are imported lazily.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from fastapi import FastAPI
from loguru import logger

from mentor_match import __version__
from mentor_match.config import Settings

if TYPE_CHECKING:
    from pydantic_ai.models.instrumented import InstrumentationSettings

MODES = ("off", "logfire", "otel")

_installed: set[str] = set()


def observability_mode(settings: Settings) -> str:
    """Normalized mode; anything unrecognised counts as ``"off"``."""
    mode = settings.observability.strip().lower()
    if mode not in MODES:
        logger.warning("Unknown observability mode '{}', tracing disabled", mode)
        return "off"
    return mode


def configure_tracing(settings: Settings) -> str:
    """Install the selected backend if needed and return the active mode."""
    mode = observability_mode(settings)
    if mode == "off" or mode in _installed:
        return mode
    if mode == "logfire":
        _install_logfire(settings)
    else:
        _install_otel(settings)
    _installed.add(mode)
    return mode


def instrument_app(app: FastAPI, settings: Settings) -> None:
    """Trace every request handled by the account service."""
    mode = configure_tracing(settings)
    if mode == "logfire":
        import logfire

        logfire.instrument_fastapi(app)
    elif mode == "otel":
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)


def instrument_http_client(client: httpx.AsyncClient, settings: Settings) -> None:
    """Trace the profile client's calls to the account service."""
    mode = configure_tracing(settings)
    if mode == "logfire":
        import logfire

        logfire.instrument_httpx(client)
    elif mode == "otel":
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

        HTTPXClientInstrumentor.instrument_client(client)


def agent_instrumentation(settings: Settings) -> InstrumentationSettings | None:
    """PydanticAI instrumentation for the content agent, or ``None`` when off.

    Pass the result as ``Agent(..., instrument=...)``; agent runs then emit
    spans to the backend installed by ``configure_tracing``.
    """
    if configure_tracing(settings) == "off":
        return None
    from pydantic_ai.models.instrumented import InstrumentationSettings

    return InstrumentationSettings()


def _install_logfire(settings: Settings) -> None:
    import logfire

    logfire.configure(service_name=settings.otel_service_name, service_version=__version__)
    logger.info("Logfire tracing enabled | service={}", settings.otel_service_name)


def _install_otel(settings: Settings) -> None:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": settings.otel_service_name, "service.version": __version__}
        )
    )
    endpoint = f"{settings.otel_exporter_otlp_endpoint.rstrip('/')}/v1/traces"
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    if settings.otel_console_exporter:
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    logger.info("OpenTelemetry tracing enabled | service={} endpoint={}", settings.otel_service_name, endpoint)
