"""OpenTelemetry metrics adapter (counters + histograms for orchestration runs)."""

import logging
from dataclasses import dataclass
from importlib import import_module
from typing import Any

from pdf_tutor.application.ports.telemetry_port import TelemetryPort

logger = logging.getLogger(__name__)


@dataclass
class OtelConfig:
    service_name: str = "pdf-tutor"
    otlp_endpoint: str | None = None  # e.g., "http://localhost:4317"
    environment: str = "production"
    enable_console: bool = False  # Debug: print metrics to console
    metric_prefix: str = "pdf_tutor."


class OpenTelemetryAdapter(TelemetryPort):
    """Counters via ``incr()``, histograms via ``observe()``.

    Instruments are created lazily on first use. If opentelemetry-sdk cannot
    be initialized, every call is a no-op.
    """

    def __init__(self, cfg: OtelConfig) -> None:
        self._cfg = cfg
        self._meter: Any | None = None
        self._counters: dict[str, Any] = {}
        self._histograms: dict[str, Any] = {}
        self._init_otel()

    @property
    def enabled(self) -> bool:
        return self._meter is not None

    def _init_otel(self) -> None:
        try:
            otel_sdk = import_module("opentelemetry.sdk.metrics")
            otel_export = import_module("opentelemetry.sdk.metrics.export")
            otel_metrics = import_module("opentelemetry.metrics")
            otel_resources = import_module("opentelemetry.sdk.resources")

            resource = otel_resources.Resource.create(
                {
                    "service.name": self._cfg.service_name,
                    "deployment.environment": self._cfg.environment,
                }
            )

            readers = []
            if self._cfg.otlp_endpoint:
                otel_otlp = import_module("opentelemetry.exporter.otlp.proto.grpc.metric_exporter")
                exporter = otel_otlp.OTLPMetricExporter(endpoint=self._cfg.otlp_endpoint)
                readers.append(otel_export.PeriodicExportingMetricReader(exporter))
            if self._cfg.enable_console:
                readers.append(otel_export.PeriodicExportingMetricReader(otel_export.ConsoleMetricExporter()))

            provider = otel_sdk.MeterProvider(resource=resource, metric_readers=readers)
            otel_metrics.set_meter_provider(provider)
            self._meter = otel_metrics.get_meter(__name__)
        except Exception as ex:  # noqa: BLE001
            logger.warning("OpenTelemetry disabled: %s", ex)
            self._meter = None

    def _attributes(self, tags: dict[str, Any] | None) -> dict[str, Any]:
        return {k: v if isinstance(v, (str, bool, int, float)) else str(v) for k, v in (tags or {}).items()}

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        if self._meter is None:
            return
        try:
            full = self._cfg.metric_prefix + name
            if full not in self._counters:
                self._counters[full] = self._meter.create_counter(name=full, description=f"Counter for {name}")
            self._counters[full].add(1, attributes=self._attributes(tags))
        except Exception as ex:  # noqa: BLE001
            logger.debug("Metric %s dropped: %s", name, ex)

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        if self._meter is None:
            return
        try:
            full = self._cfg.metric_prefix + name
            if full not in self._histograms:
                self._histograms[full] = self._meter.create_histogram(
                    name=full, description=f"Histogram for {name}"
                )
            self._histograms[full].record(value, attributes=self._attributes(tags))
        except Exception as ex:  # noqa: BLE001
            logger.debug("Metric %s dropped: %s", name, ex)
