"""Reconciliation of draft releases against GitHub."""
