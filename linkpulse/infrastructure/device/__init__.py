"""Device signal collection."""
