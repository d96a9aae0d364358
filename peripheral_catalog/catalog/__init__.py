"""Catalog domain: service, filter engine, state holder and comparison."""
