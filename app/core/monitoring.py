from prometheus_client import Counter, Histogram, Info as PrometheusInfo
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from prometheus_fastapi_instrumentator.metrics import Info as MetricsInfo
import inspect
import time
from fastapi import FastAPI
from functools import wraps

from app.core.config import settings

# Custom metrics for AI services
ai_service_requests = Counter(
    'ai_service_requests_total',
    'Total requests to AI services',
    ['service', 'endpoint', 'status']
)

ai_service_duration = Histogram(
    'ai_service_duration_seconds',
    'Duration of AI service requests',
    ['service', 'endpoint']
)

ai_service_tokens = Counter(
    'ai_service_tokens_total',
    'Total tokens used by AI services',
    ['service', 'type']  # type: prompt/completion
)

# Routine synthesis metrics
routine_regenerations = Counter(
    'routine_regenerations_total',
    'Background routine regeneration jobs',
    ['trigger', 'status']  # trigger: created/updated/deleted, status: success/skipped/error
)

routine_steps_dropped = Counter(
    'routine_steps_dropped_total',
    'AI suggested steps that matched no catalog product',
    ['routine_type']
)

# App info
app_info = PrometheusInfo('app_info', 'Application information')
app_info.info({
    'version': settings.APP_VERSION,
    'name': settings.APP_NAME,
    'environment': 'development' if settings.DEBUG else 'production'
})

def setup_metrics(app: FastAPI) -> Instrumentator:
    """
    Set up Prometheus metrics for FastAPI application
    """
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/health"],
    )

    instrumentator.add(
        metrics.latency(
            buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
        )
    )
    instrumentator.add(metrics.requests())

    # Error rate by endpoint
    @instrumentator.add
    def error_rate(info: MetricsInfo) -> None:
        if not hasattr(error_rate, '_counter'):
            error_rate._counter = Counter(
                name="http_errors_total",
                documentation="Total number of HTTP errors",
                labelnames=("method", "handler", "status"),
            )

        if str(info.modified_status).startswith(("4", "5")):
            error_rate._counter.labels(
                method=info.method,
                handler=info.modified_handler,
                status=str(info.modified_status)
            ).inc()

    return instrumentator

def track_ai_service(service: str, endpoint: str):
    """
    Decorator to track AI service metrics (handles both sync and async functions)
    """
    def decorator(func):
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.time()
                status = "success"

                try:
                    return await func(*args, **kwargs)
                except Exception:
                    status = "error"
                    raise
                finally:
                    duration = time.time() - start_time
                    ai_service_requests.labels(service=service, endpoint=endpoint, status=status).inc()
                    ai_service_duration.labels(service=service, endpoint=endpoint).observe(duration)

            return async_wrapper
        else:
            @wraps(func)
            def sync_wrapper(*args, **kwargs):
                start_time = time.time()
                status = "success"

                try:
                    return func(*args, **kwargs)
                except Exception:
                    status = "error"
                    raise
                finally:
                    duration = time.time() - start_time
                    ai_service_requests.labels(service=service, endpoint=endpoint, status=status).inc()
                    ai_service_duration.labels(service=service, endpoint=endpoint).observe(duration)

            return sync_wrapper
    return decorator
