"""Presentation layer: human-readable rendering of plans, reports and outputs."""

from .human_formatter import format_outputs, format_plan, format_report, outputs_as_dict

__all__ = ["format_outputs", "format_plan", "format_report", "outputs_as_dict"]
