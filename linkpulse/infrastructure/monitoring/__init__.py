"""Monitoring: logging setup and domain event dispatch."""
