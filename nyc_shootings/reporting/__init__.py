from nyc_shootings.reporting.report import (
    RunReport,
    RunReportGenerator,
    environment_report,
    format_model_summaries,
    package_versions,
    write_model_summaries,
)

__all__ = [
    "RunReport",
    "RunReportGenerator",
    "environment_report",
    "format_model_summaries",
    "package_versions",
    "write_model_summaries",
]
