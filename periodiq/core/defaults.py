"""Shared default constants for the periodiq library."""

# Tick granularity, in the same unit as event periods (seconds by default).
DEFAULT_QUANTUM_SIZE: float = 5.0
