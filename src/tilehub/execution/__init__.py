"""
Execution primitives: circuit breakers and the provider request serializer.

Tags:
    tilehub, execution, resilience, rate-limit
"""

from tilehub.execution.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitBreakerState,
    CircuitState,
    source_breaker_key,
    tile_breaker_key,
)
from tilehub.execution.serializer import RequestSerializer

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitBreakerState",
    "CircuitState",
    "source_breaker_key",
    "tile_breaker_key",
    "RequestSerializer",
]
