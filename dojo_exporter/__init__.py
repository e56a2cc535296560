"""Prometheus exporter for DefectDojo vulnerability counts."""

__version__ = "0.1.0"
