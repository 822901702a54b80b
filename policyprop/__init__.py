"""Reconcilers, models, an in-memory store and metrics for governance policies and policy sets."""

__version__ = "0.1.0"