"""Reporting over tracked time."""
