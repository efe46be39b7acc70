"""Persistence layer - database manager, models and repositories."""
