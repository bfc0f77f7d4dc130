"""API endpoints.

Each module defines a FastAPI router that is included in the main application.

Available routers:
- system: Health checks and system status
- timer: Start, stop and the running entry
- entries: Entry CRUD and bulk operations
- history: Grouped week/day view and period totals
- projects: Project management
"""

__all__ = ["system", "timer", "entries", "history", "projects"]

from chronii.api.endpoints import entries, history, projects, system, timer  # noqa: F401
