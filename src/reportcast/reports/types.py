"""Report types shared by the data source, renderer and gateway."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

Row = dict[str, Any]


class ArtifactKind(Enum):
    TEXT = "text"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Artifact:
    """The rendered output of one firing."""

    kind: ArtifactKind
    display_name: str
    text: str | None = None
    path: Path | None = None

    @property
    def filename(self) -> str | None:
        return self.path.name if self.path else None

    @property
    def is_document(self) -> bool:
        return self.kind is ArtifactKind.DOCUMENT
