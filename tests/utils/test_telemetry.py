"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from opentelemetry import trace

from buildrunner.runner import streaming
from buildrunner.runner.models import Command
from buildrunner.utils.telemetry import (
    ATTR_EXIT_CODE,
    ATTR_PROGRAM,
    _INSTRUMENTATION_NAME,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        assert isinstance(get_tracer("test.module"), trace.Tracer)

    def test_default_name(self) -> None:
        assert isinstance(get_tracer(), trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        tracer = get_tracer("test.noop")
        with tracer.start_as_current_span("test") as span:
            span.set_attribute("key", "value")


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry()

    def test_otlp_raises_without_exporter(self) -> None:
        try:
            import opentelemetry.sdk.trace  # noqa: F401
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        original = trace.get_tracer_provider()
        try:
            with patch.dict(
                "sys.modules",
                {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
            ):
                with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                    configure_telemetry(
                        export_to_console=False,
                        otlp_endpoint="http://localhost:4317",
                    )
        finally:
            trace.set_tracer_provider(original)


class TestExecuteSpan:
    async def test_span_attributes(self, tmp_path: Path) -> None:
        span = MagicMock()
        tracer = MagicMock()
        tracer.start_as_current_span.return_value.__enter__.return_value = span

        with patch.object(streaming, "_tracer", tracer):
            await streaming.execute(Command(program="true", cwd=tmp_path), tmp_path)

        tracer.start_as_current_span.assert_called_once_with("runner.execute")
        span.set_attribute.assert_any_call(ATTR_PROGRAM, "true")
        span.set_attribute.assert_any_call(ATTR_EXIT_CODE, 0)


class TestAttributeConstants:
    def test_constants_are_namespaced(self) -> None:
        assert ATTR_PROGRAM.startswith("buildrunner.")

    def test_instrumentation_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "buildrunner"
