"""Anonymizing replication of customer records."""

__version__ = "0.1.0"
