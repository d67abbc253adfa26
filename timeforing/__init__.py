"""Timeføring: time-tracking API with users, projects, time entries and Excel reports."""

__version__ = "0.1.0"
