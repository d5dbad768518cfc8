"""API Resilience Implementations.

Contains the retry coordinator: failure classification, exponential backoff
with jitter, and honouring server-directed Retry-After delays.
Bounded Context: API Resilience
"""
