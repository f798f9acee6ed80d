"""Services for the presentation layers."""

from .dashboard import DashboardService, DashboardSummary

__all__ = [
    "DashboardService",
    "DashboardSummary",
]
