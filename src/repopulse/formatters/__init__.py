"""Output formatters for analysis reports."""

from repopulse.formatters.json_report import format_json, report_to_dict

__all__ = ["format_json", "report_to_dict"]
