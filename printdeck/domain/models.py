from __future__ import annotations

import math
from datetime import datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field


class FileKind(str, Enum):
    MODEL = "model"
    MACHINECODE = "machinecode"
    FOLDER = "folder"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, raw: str) -> "FileKind":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


class FileOrigin(str, Enum):
    LOCAL = "local"
    SDCARD = "sdcard"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, raw: str) -> "FileOrigin":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


class SortCriterion(IntEnum):
    # Ordinals are persisted; do not renumber.
    UPLOAD_DATE = 0
    ALPHABETICAL = 1


_ORIGIN_LABELS: dict[FileOrigin, str] = {
    FileOrigin.LOCAL: "OctoPrint",
    FileOrigin.SDCARD: "SD Card",
}

_KIND_LABELS: dict[FileKind, str] = {
    FileKind.MODEL: "Model",
    FileKind.MACHINECODE: "Code",
    FileKind.FOLDER: "Folder",
}


def format_byte_count(size: int) -> str:
    """Render a byte count in file-style decimal units, KB or MB only.

    Halves round up; anything that rounds to 1,000 KB is shown in MB.
    """
    if size == 0:
        return "Zero KB"
    sign = "-" if size < 0 else ""
    magnitude = abs(size)
    kilobytes = max(1, math.floor(magnitude / 1000 + 0.5))
    if kilobytes < 1000:
        return f"{sign}{kilobytes:,} KB"
    tenths = math.floor(magnitude / 100_000 + 0.5)
    whole, fraction = divmod(tenths, 10)
    text = f"{whole:,}" if fraction == 0 else f"{whole:,}.{fraction}"
    return f"{sign}{text} MB"


def format_duration(seconds: float) -> str:
    if not math.isfinite(seconds):
        return ""
    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m {secs:02d}s"


class FileNode(BaseModel):
    """One entry of a printer host's file listing: a file or a folder.

    ``==`` is pydantic value equality over every field. Whether two nodes
    stand for the same remote entry is decided by ``identity``
    (origin, path, kind) alone, see ``same_entry``.
    """

    model_config = ConfigDict(frozen=True)

    display_name: str | None = None
    name: str | None = None
    path: str | None = None
    kind: FileKind | None = None
    origin: FileOrigin | None = None
    size_bytes: int | None = None
    estimated_print_time_seconds: float | None = None
    uploaded_at: datetime | None = None
    children: tuple[FileNode, ...] | None = None

    @property
    def identity(self) -> tuple[FileOrigin | None, str | None, FileKind | None]:
        return (self.origin, self.path, self.kind)

    def same_entry(self, other: FileNode) -> bool:
        return self.identity == other.identity

    @property
    def is_folder(self) -> bool:
        return self.kind == FileKind.FOLDER

    @property
    def is_model(self) -> bool:
        return self.kind == FileKind.MODEL

    @property
    def can_be_printed(self) -> bool:
        return self.kind == FileKind.MACHINECODE

    @property
    def can_be_deleted(self) -> bool:
        return self.kind != FileKind.FOLDER

    def display_origin(self) -> str:
        if self.origin is None:
            return "Unknown"
        return _ORIGIN_LABELS.get(self.origin, "Unknown")

    def display_kind(self) -> str:
        if self.kind is None:
            return "Unknown"
        return _KIND_LABELS.get(self.kind, "Unknown")

    def display_size(self) -> str:
        if self.size_bytes is None:
            return ""
        return format_byte_count(self.size_bytes)

    def display_print_time(self) -> str:
        if self.estimated_print_time_seconds is None:
            return ""
        return format_duration(self.estimated_print_time_seconds)


class FileListing(BaseModel):
    model_config = ConfigDict(frozen=True)

    files: tuple[FileNode, ...] = Field(default_factory=tuple)
    free_bytes: int | None = None
    total_bytes: int | None = None


FileNode.model_rebuild()
