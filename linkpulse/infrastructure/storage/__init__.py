"""Local state storage adapters (disk and in-memory)."""
