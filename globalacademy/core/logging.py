"""
Structured logging and monitoring for the content service
"""
import sys
import time
import asyncio
from functools import wraps
from typing import Optional, Callable
from contextvars import ContextVar
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from prometheus_client import Counter, Histogram, Gauge
import logging

from globalacademy.config import settings

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Prometheus metrics
translation_requests = Counter(
    "translation_requests_total", "Translation requests by outcome", ["outcome"]
)
translation_cache_entries = Gauge("translation_cache_entries", "Entries held in the translation cache")
llm_requests = Counter("llm_requests_total", "Total LLM requests", ["model", "operation", "status"])
llm_duration = Histogram("llm_duration_seconds", "LLM request duration", ["model", "operation"])
generation_fallbacks = Counter(
    "generation_fallbacks_total", "Generated content replaced by a fallback payload", ["operation"]
)


def add_request_context(logger, method_name, event_dict):
    """Add request context to log events"""
    request_id = request_id_var.get()

    if request_id:
        event_dict["request_id"] = request_id

    # Add service metadata
    event_dict["service"] = "globalacademy-content"
    event_dict["environment"] = settings.environment.value

    return event_dict


def setup_logging():
    """Configure structured logging for the application"""

    # Configure Python logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper())
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_request_context,
        CallsiteParameterAdder(
            parameters=[CallsiteParameter.FILENAME, CallsiteParameter.LINENO]
        ),
        structlog.processors.UnicodeDecoder(),
    ]

    # Use JSON in production
    if settings.log_format == "json" or settings.is_production:
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Get a configured logger instance"""
    return structlog.get_logger(name)


def log_execution_time(func: Callable) -> Callable:
    """Decorator to log and measure coroutine execution time"""
    logger = get_logger(func.__module__)

    if not asyncio.iscoroutinefunction(func):
        raise TypeError("log_execution_time only wraps coroutine functions")

    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.time()
        function_name = func.__name__

        logger.info("function_start", function=function_name)

        try:
            result = await func(*args, **kwargs)
            duration = time.time() - start_time

            logger.info("function_success",
                       function=function_name,
                       duration_seconds=duration)

            return result

        except Exception as e:
            duration = time.time() - start_time

            logger.error("function_error",
                        function=function_name,
                        duration_seconds=duration,
                        error=str(e),
                        error_type=type(e).__name__)
            raise

    return async_wrapper


class MetricsLogger:
    """Helper class for logging with metrics"""

    def __init__(self, logger: structlog.BoundLogger):
        self.logger = logger

    def log_translation(self, outcome: str, source: str, target: str):
        """Count a translation request by how it was served"""
        translation_requests.labels(outcome=outcome).inc()
        self.logger.debug("translation_served",
                         outcome=outcome,
                         source=source,
                         target=target)

    def log_cache_size(self, size: int):
        translation_cache_entries.set(size)

    def log_llm_request(self, model: str, operation: str, prompt_length: int):
        """Log LLM request"""
        self.logger.info("llm_request",
                        model=model,
                        operation=operation,
                        prompt_length=prompt_length)

    def log_llm_complete(self, model: str, operation: str, duration: float,
                        success: bool = True):
        """Log LLM completion"""
        status = "success" if success else "error"
        llm_requests.labels(model=model, operation=operation, status=status).inc()
        llm_duration.labels(model=model, operation=operation).observe(duration)

        if success:
            self.logger.info("llm_complete",
                           model=model,
                           operation=operation,
                           duration_seconds=duration)
        else:
            self.logger.error("llm_failed",
                            model=model,
                            operation=operation,
                            duration_seconds=duration)

    def log_generation_fallback(self, operation: str, error: str):
        """Log a generated payload replaced by its fallback"""
        generation_fallbacks.labels(operation=operation).inc()
        self.logger.warning("generation_fallback_used",
                           operation=operation,
                           error=error)


# Initialize logging on module import
setup_logging()

# Create default logger
logger = get_logger(__name__)
metrics_logger = MetricsLogger(logger)
