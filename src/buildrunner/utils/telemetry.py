"""OpenTelemetry tracing helpers for buildrunner.

The rest of the codebase calls ``get_tracer()`` without caring whether the
SDK is installed.  Without a configured SDK the API hands out no-op spans.

Usage::

    from buildrunner.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("runner.execute") as span:
        span.set_attribute(ATTR_PROGRAM, "bash")

Call :func:`configure_telemetry` once at startup to export spans
(requires the ``otel`` extra: ``pip install buildrunner[otel]``).
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys used throughout buildrunner instrumentation
# ---------------------------------------------------------------------------

ATTR_RUNNER_KIND = "buildrunner.runner.kind"
ATTR_PROGRAM = "buildrunner.runner.program"
ATTR_WORK_DIR = "buildrunner.runner.work_dir"
ATTR_EXIT_CODE = "buildrunner.runner.exit_code"

_INSTRUMENTATION_NAME = "buildrunner"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "buildrunner",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install a tracer provider that exports ``runner.*`` spans.

    Console export writes one JSON document per finished span to stdout;
    *otlp_endpoint* sends spans to a collector over gRPC in batches.  Both
    may be enabled at once (``buildrunner exec --telemetry --otlp-endpoint``).

    Raises:
        ImportError: ``opentelemetry-sdk`` (or, for *otlp_endpoint*,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install buildrunner[otel]"
        )
        raise ImportError(msg) from exc

    processors = _span_processors(export_to_console=export_to_console, otlp_endpoint=otlp_endpoint)

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)


def _span_processors(*, export_to_console: bool, otlp_endpoint: str | None) -> list[Any]:
    from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    processors: list[Any] = []
    if export_to_console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter()))

    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports]
        except ImportError as exc:
            msg = (
                "opentelemetry-exporter-otlp is required for OTLP export. "
                "Install it with: pip install buildrunner[otel]"
            )
            raise ImportError(msg) from exc
        processors.append(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    return processors
