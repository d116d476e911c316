"""Core utilities: exceptions, readiness gate, password hashing."""
