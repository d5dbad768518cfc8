"""HTTP adapter: the single-attempt request executor."""
