"""Declarative model of the oVirt Engine REST API."""

__version__ = "4.2.0"
