"""Command line interface for the Integration Toolkit."""
