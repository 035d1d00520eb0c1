"""
Report Generation Module

Builds the final visibility report from a consolidated analysis.
"""

from .generator import (
    generate_model_breakdown,
    generate_report,
    generate_report_id,
    unique_items,
)

__all__ = [
    "generate_model_breakdown",
    "generate_report",
    "generate_report_id",
    "unique_items",
]
