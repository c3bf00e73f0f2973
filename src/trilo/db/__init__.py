"""Persistence layer: declarative base, ORM models and dialect helpers."""
