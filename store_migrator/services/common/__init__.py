from .metafield_definitions import ensure_metafield_definitions
from .progress_tracker import MigrationProgressTracker
from .publications import build_publication_inputs, build_publication_map, index_publications_by_app_handle
from .report_writer import ExcelReportWriter, report_timestamp, write_json_report

__all__ = [
    "ensure_metafield_definitions",
    "MigrationProgressTracker",
    "build_publication_inputs",
    "build_publication_map",
    "index_publications_by_app_handle",
    "ExcelReportWriter",
    "report_timestamp",
    "write_json_report",
]
