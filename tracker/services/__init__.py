"""Services for the AI Visibility Tracker."""

from .orchestrator import AnalysisOrchestrator, create_orchestrator

__all__ = [
    "AnalysisOrchestrator",
    "create_orchestrator",
]
