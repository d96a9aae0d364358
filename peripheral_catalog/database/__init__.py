"""Catalog stores: in-memory stub and SQLAlchemy-backed implementation."""
