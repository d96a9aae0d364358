"""Peripheral catalog: browse, filter, favorite and compare computer peripherals."""

__version__ = "1.0.0"
