"""REST API for Chronii.

A FastAPI application exposing the timer, entries, the grouped history and
projects over HTTP. There is no authentication; bind it to localhost.

Usage:
    # Start server
    chronii serve

    # Access API docs
    http://localhost:8000/docs
"""

__all__ = ["create_app", "run_server"]

from chronii.api.server import create_app, run_server  # noqa: F401
