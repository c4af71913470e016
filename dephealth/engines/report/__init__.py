"""Report engine: aggregation, JSON schemas and exit-code policy."""

from dephealth.engines.report.assembler import Recommendation, Report, assemble_report
from dephealth.engines.report.policy import FailPolicy, determine_exit_code

__all__ = [
    "FailPolicy",
    "Recommendation",
    "Report",
    "assemble_report",
    "determine_exit_code",
]
