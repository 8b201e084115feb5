"""Persistence layer: engine policy, ORM tables and migrations."""
