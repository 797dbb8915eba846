"""Integration Toolkit: apply scaffolded Application Integration resources."""

__version__ = "0.1.0"
