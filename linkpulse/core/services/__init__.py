"""Application services: event batching, eligibility, and endpoint wrappers."""
