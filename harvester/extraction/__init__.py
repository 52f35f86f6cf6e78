from harvester.extraction.diagnostics import (
    DiagnosticEvent,
    DiagnosticsSink,
    LoggingDiagnostics,
    MemoryDiagnostics,
)
from harvester.extraction.feed import scrape_feed
from harvester.extraction.pagination import PaginationReport, expand, expand_truncated
from harvester.extraction.pipeline import ExtractionPipeline
from harvester.extraction.resolver import Resolution, SelectorResolver
from harvester.extraction.selectors import Candidate, FieldKind

__all__ = [
    "Candidate",
    "DiagnosticEvent",
    "DiagnosticsSink",
    "ExtractionPipeline",
    "FieldKind",
    "LoggingDiagnostics",
    "MemoryDiagnostics",
    "PaginationReport",
    "Resolution",
    "SelectorResolver",
    "expand",
    "expand_truncated",
    "scrape_feed",
]
