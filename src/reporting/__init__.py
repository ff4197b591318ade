"""Reporting package."""

from .data_processor import DataProcessor
from .report_generator import ReportGenerator, format_duration

__all__ = ["DataProcessor", "ReportGenerator", "format_duration"]
