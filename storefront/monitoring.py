"""Tracing and business metrics.

Instruments are created against the global OpenTelemetry API, so they are
no-ops until `init_telemetry` installs the SDK providers at startup. Tests and
local runs with `OTEL_ENABLED=false` never export anything.
"""
import logging

from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

from storefront.config import OTEL_EXPORTER_OTLP_ENDPOINT, SERVICE_NAME

logger = logging.getLogger(__name__)


def init_tracing() -> None:
    """Install the OTLP tracer provider."""
    resource = Resource.create({"service.name": SERVICE_NAME})

    tracer_provider = TracerProvider(resource=resource)
    otlp_span_exporter = OTLPSpanExporter(
        endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))
    trace.set_tracer_provider(tracer_provider)

    logger.info(f"Tracing initialized with endpoint: {OTEL_EXPORTER_OTLP_ENDPOINT}")


def init_metrics() -> None:
    """Install the OTLP meter provider."""
    resource = Resource.create({"service.name": SERVICE_NAME})

    otlp_metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True),
        export_interval_millis=5000
    )
    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[otlp_metric_reader]
    )
    metrics.set_meter_provider(meter_provider)

    logger.info("Metrics initialized with OTLP exporter")


def init_telemetry() -> None:
    init_tracing()
    init_metrics()


meter = metrics.get_meter(__name__)

# Identity metrics
registrations_counter = meter.create_counter(
    "storefront.users.registrations",
    description="Total number of user registrations",
    unit="1"
)

auth_attempts_counter = meter.create_counter(
    "storefront.auth.attempts",
    description="Total number of authentication attempts",
    unit="1"
)

auth_failures_counter = meter.create_counter(
    "storefront.auth.failures",
    description="Total number of authentication failures",
    unit="1"
)

# Catalog metrics
product_views_counter = meter.create_counter(
    "storefront.products.views",
    description="Total number of product catalog and detail views",
    unit="1"
)

# Cart metrics
cart_mutations_counter = meter.create_counter(
    "storefront.cart.mutations",
    description="Cart mutations by operation (add, remove, update, delete)",
    unit="1"
)

cart_conflicts_counter = meter.create_counter(
    "storefront.cart.conflicts",
    description="Cart writes rejected because of a concurrent modification",
    unit="1"
)

# Order metrics
checkout_counter = meter.create_counter(
    "storefront.checkouts",
    description="Total number of checkouts",
    unit="1"
)

checkout_amount_histogram = meter.create_histogram(
    "storefront.checkout.amount",
    description="Checkout amount",
    unit="USD"
)

# Security monitoring metrics
rate_limit_exceeded_counter = meter.create_counter(
    "storefront.rate_limit.exceeded",
    description="Total number of rate limit violations",
    unit="1"
)

suspicious_activity_counter = meter.create_counter(
    "storefront.security.suspicious_activity",
    description="Total number of suspicious activity detections",
    unit="1"
)
