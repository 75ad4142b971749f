"""Loftsman: ship Helm charts to Kubernetes from a manifest."""

__version__ = "1.0.0"
