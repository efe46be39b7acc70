"""Core layer - configuration, runtime options, logging and hooks."""
