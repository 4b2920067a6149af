"""Shared observability helpers."""
from .observability import (
    StructuredLogger,
    TracingManager,
    get_correlation_id,
    get_logger,
    init_observability,
    traced_function,
)
from .correlation import with_correlation

__all__ = [
    'StructuredLogger',
    'TracingManager',
    'get_correlation_id',
    'get_logger',
    'init_observability',
    'traced_function',
    'with_correlation',
]
