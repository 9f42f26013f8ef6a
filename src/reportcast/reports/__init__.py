"""Report pipeline: data source, renderer and the per-firing job body."""

from reportcast.reports.pipeline import ReportPipeline
from reportcast.reports.render import Renderer, use_text_form
from reportcast.reports.source import DataSource, HttpDataSource
from reportcast.reports.types import Artifact, ArtifactKind, Row

__all__ = [
    "Artifact",
    "ArtifactKind",
    "DataSource",
    "HttpDataSource",
    "Renderer",
    "ReportPipeline",
    "Row",
    "use_text_form",
]
