"""
Prometheus Metrics for the Document Generation Pipeline

Metrics Categories:
- Request metrics: Total requests, success/failure rates, latency
- LLM metrics: Provider calls, latency, token usage
- Error metrics: Failures by type and component, validation failures
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST
)
from functools import wraps
from time import time
from typing import Callable, Any
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST METRICS
# =============================================================================

generation_requests_total = Counter(
    'generation_requests_total',
    'Total number of resume/cover letter generation requests',
    ['endpoint', 'status']  # Labels: endpoint name, success/failure
)

generation_latency_seconds = Histogram(
    'generation_latency_seconds',
    'Generation request duration in seconds',
    ['endpoint'],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0]
)

generation_requests_in_progress = Gauge(
    'generation_requests_in_progress',
    'Number of requests currently being processed',
    ['endpoint']
)


# =============================================================================
# LLM-SPECIFIC METRICS
# =============================================================================

llm_api_calls_total = Counter(
    'llm_api_calls_total',
    'Total number of LLM API calls',
    ['provider', 'model', 'status']
)

llm_latency_seconds = Histogram(
    'llm_latency_seconds',
    'LLM API call duration in seconds',
    ['provider', 'model'],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 40.0, 60.0]
)

llm_tokens_total = Counter(
    'llm_tokens_total',
    'Total number of tokens consumed (estimated)',
    ['model', 'token_type']  # token_type: input, output
)


# =============================================================================
# ERROR METRICS
# =============================================================================

application_errors_total = Counter(
    'application_errors_total',
    'Total number of errors',
    ['error_type', 'component']
)

validation_failures_total = Counter(
    'validation_failures_total',
    'Total number of validation failures',
    ['validation_type']
)


# =============================================================================
# SYSTEM METRICS
# =============================================================================

application_info = Info(
    'application',
    'Application version and metadata'
)

application_info.info({
    'version': '0.1.0',
    'component': 'document_generation_service'
})


# =============================================================================
# UTILITY DECORATORS
# =============================================================================

def track_request_metrics(endpoint: str):
    """
    Decorator to track request metrics for a coroutine.

    Usage:
        @track_request_metrics("generate_documents")
        async def generate(self, candidate, provider_config):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            generation_requests_in_progress.labels(endpoint=endpoint).inc()
            start_time = time()

            try:
                result = await func(*args, **kwargs)

                generation_requests_total.labels(
                    endpoint=endpoint,
                    status='success'
                ).inc()

                return result

            except Exception as e:
                generation_requests_total.labels(
                    endpoint=endpoint,
                    status='failure'
                ).inc()

                application_errors_total.labels(
                    error_type=type(e).__name__,
                    component=endpoint
                ).inc()

                raise

            finally:
                duration = time() - start_time
                generation_latency_seconds.labels(
                    endpoint=endpoint
                ).observe(duration)

                generation_requests_in_progress.labels(endpoint=endpoint).dec()

        return wrapper
    return decorator


# =============================================================================
# METRIC RECORDING FUNCTIONS
# =============================================================================

def record_llm_call(provider: str, model: str, status: str, duration: float):
    llm_api_calls_total.labels(provider=provider, model=model, status=status).inc()
    llm_latency_seconds.labels(provider=provider, model=model).observe(duration)


def record_llm_usage(model: str, input_tokens: int, output_tokens: int):
    """
    Record LLM token usage.

    Args:
        model: Model name
        input_tokens: Number of input tokens
        output_tokens: Number of output tokens
    """
    llm_tokens_total.labels(
        model=model,
        token_type='input'
    ).inc(input_tokens)

    llm_tokens_total.labels(
        model=model,
        token_type='output'
    ).inc(output_tokens)


def record_validation_failure(validation_type: str):
    """
    Record a validation failure.

    Args:
        validation_type: Type of validation (input, body_size)
    """
    validation_failures_total.labels(
        validation_type=validation_type
    ).inc()


def record_error(error_type: str, component: str):
    application_errors_total.labels(
        error_type=error_type,
        component=component
    ).inc()


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

def get_metrics() -> tuple[bytes, str]:
    """
    Get Prometheus metrics in text format.

    Returns:
        Tuple of (metrics_bytes, content_type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
