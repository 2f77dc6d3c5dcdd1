"""OpenTelemetry setup with credential redaction on exported spans."""
import logging
import re
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, Span, SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from veritas.core.config import Settings
from veritas.logging_hardening import redact_text

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"


class RedactingSpanProcessor(SpanProcessor):
    """
    SpanProcessor that redacts credential-bearing attributes before the
    wrapped processor (and its exporter) sees the span.
    """
    def __init__(self, processor: SpanProcessor):
        self._processor = processor
        self._sensitive_keys = {"authorization", "cookie", "set-cookie", "api_key", "apikey"}
        self._sensitive_patterns = [
            re.compile(r"http\.request\.header\..*", re.IGNORECASE),
            re.compile(r"http\.response\.header\..*", re.IGNORECASE),
            re.compile(r".*(api_?key|secret|token|nonce|ciphertext|encryption).*", re.IGNORECASE),
        ]

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        self._processor.on_start(span, parent_context)

    def on_end(self, span: ReadableSpan) -> None:
        if span.attributes:
            redacted = {}
            for key, value in span.attributes.items():
                if self._should_redact(key):
                    redacted[key] = REDACTED
                elif isinstance(value, str):
                    redacted[key] = redact_text(value)
                else:
                    redacted[key] = value
            # ReadableSpan has no public setter once ended
            if hasattr(span, "_attributes"):
                span._attributes = redacted

        self._processor.on_end(span)

    def shutdown(self) -> None:
        self._processor.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._processor.force_flush(timeout_millis)

    def _should_redact(self, key: str) -> bool:
        key_lower = key.lower()
        if key_lower in self._sensitive_keys:
            return True
        return any(pattern.match(key_lower) for pattern in self._sensitive_patterns)


def setup_opentelemetry(app: FastAPI, settings: Settings) -> None:
    """Instrument the app and every engine created afterwards."""
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    provider = TracerProvider()

    if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True))
    elif settings.DEV_MODE:
        processor = BatchSpanProcessor(ConsoleSpanExporter())
    else:
        processor = None

    if processor:
        provider.add_span_processor(RedactingSpanProcessor(processor))

    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls="health/*")
    SQLAlchemyInstrumentor().instrument(tracer_provider=provider, enable_commenter=False)
    logger.info("Tracing enabled")
