"""Temporal reconciliation of dual-head sensor exports and shift logs."""

__version__ = "0.1.0"
