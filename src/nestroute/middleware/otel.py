"""OpenTelemetry tracing and metrics middleware for lazy loads.

Creates one span per loader invocation and records load durations.

Install with: uv add "nestroute[otel]"
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from nestroute.tree import Loader

try:
    from opentelemetry import metrics, trace
    from opentelemetry.trace import SpanKind, StatusCode, TracerProvider
except ImportError as e:
    msg = (
        "OpenTelemetry middleware requires the 'otel' extra. "
        "Install with: uv add 'nestroute[otel]'"
    )
    raise ImportError(msg) from e

from nestroute.resolve import loading_node

_DURATION_BUCKETS = (
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)


def otel(
    *,
    tracer_provider: TracerProvider | None = None,
    meter_provider: metrics.MeterProvider | None = None,
) -> Callable[[Loader], Loader]:
    """Create OpenTelemetry tracing and metrics loader middleware.

    Only depends on ``opentelemetry-api``; users bring their own SDK and
    exporters.

    Metrics emitted:
        - ``nestroute.load.duration`` (histogram, seconds)
        - ``nestroute.load.active`` (up-down counter)

    Args:
        tracer_provider: Optional TracerProvider. If None, uses the global provider.
        meter_provider: Optional MeterProvider. If None, uses the global provider.

    Returns:
        Middleware function that wraps loaders with tracing and metrics.

    Example:
        resolver = Resolver(middleware=(otel(),))
        router = Router(root, resolver=resolver)
    """
    tracer = trace.get_tracer("nestroute", tracer_provider=tracer_provider)
    meter = metrics.get_meter("nestroute", meter_provider=meter_provider)
    duration_histogram = meter.create_histogram(
        "nestroute.load.duration",
        unit="s",
        description="Duration of lazy route loads.",
        explicit_bucket_boundaries_advisory=_DURATION_BUCKETS,
    )
    active_loads_counter = meter.create_up_down_counter(
        "nestroute.load.active",
        unit="{load}",
        description="Number of lazy route loads in flight.",
    )

    def middleware(loader: Loader) -> Loader:
        async def traced_loader() -> Any:
            # set by the Resolver for the duration of the load
            node = loading_node.get(None)
            pattern = (node.path or "") if node is not None else ""
            span_name = f"nestroute.load {pattern}" if pattern else "nestroute.load"

            attributes: dict[str, str] = {"nestroute.route.pattern": pattern}
            if node is not None:
                renderable = node.renderable
                attributes["nestroute.route.renderable"] = (
                    str(renderable.__qualname__)
                    if hasattr(renderable, "__qualname__")
                    else repr(renderable)
                )
            metric_attrs: dict[str, str] = {"nestroute.route.pattern": pattern}

            active_loads_counter.add(1, metric_attrs)
            start = time.perf_counter()
            outcome = "ok"
            with tracer.start_as_current_span(
                span_name,
                kind=SpanKind.INTERNAL,
                attributes=attributes,
                record_exception=True,
                set_status_on_exception=True,
            ) as span:
                try:
                    result = await loader()
                except Exception:
                    outcome = "error"
                    raise
                finally:
                    duration = time.perf_counter() - start
                    active_loads_counter.add(-1, metric_attrs)
                    duration_histogram.record(
                        duration, {**metric_attrs, "nestroute.load.outcome": outcome}
                    )
                span.set_status(StatusCode.OK)
                return result

        return traced_loader

    return middleware
