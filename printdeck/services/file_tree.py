from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from printdeck.domain.models import (
    FileKind,
    FileListing,
    FileNode,
    FileOrigin,
    SortCriterion,
)
from printdeck.services.preferences import MemoryPreferenceStore, PreferenceStore


SORT_BY_PREFERENCE = "files/sort_by"
DEFAULT_CRITERION = SortCriterion.ALPHABETICAL


class ListingLoadError(RuntimeError):
    """Raised when a saved file listing cannot be read or decoded."""


def _optional_str(raw: object) -> str | None:
    return raw if isinstance(raw, str) else None


def _optional_int(raw: object) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    return None


def _optional_float(raw: object) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    try:
        value = float(raw)
    except OverflowError:
        return None
    # json.loads accepts NaN and Infinity.
    return value if math.isfinite(value) else None


def _optional_timestamp(raw: object) -> datetime | None:
    seconds = _optional_float(raw)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def newest_upload_date(node: FileNode) -> datetime | None:
    """Upload date of a file, or the newest upload date found under a folder."""
    if not node.is_folder:
        return node.uploaded_at
    newest: datetime | None = None
    for child in node.children or ():
        candidate = newest_upload_date(child)
        if candidate is not None and (newest is None or candidate > newest):
            newest = candidate
    return newest


def locate(root: FileNode, target: FileNode) -> FileNode | None:
    if root.same_entry(target):
        return root
    for child in root.children or ():
        found = locate(child, target)
        if found is not None:
            return found
    return None


def locate_in(nodes: Iterable[FileNode], target: FileNode) -> FileNode | None:
    for node in nodes:
        found = locate(node, target)
        if found is not None:
            return found
    return None


def _alphabetical_key(node: FileNode) -> tuple[bool, str]:
    return (not node.is_folder, node.display_name or "")


def _upload_date_key(node: FileNode) -> tuple[bool, bool, float, str]:
    newest = newest_upload_date(node)
    if newest is None:
        return (not node.is_folder, True, 0.0, node.display_name or "")
    return (not node.is_folder, False, -newest.timestamp(), node.display_name or "")


_SORT_KEYS = {
    SortCriterion.ALPHABETICAL: _alphabetical_key,
    SortCriterion.UPLOAD_DATE: _upload_date_key,
}


class FileTreeService:
    def __init__(self, preferences: PreferenceStore | None = None) -> None:
        self.preferences = preferences or MemoryPreferenceStore()

    def default_criterion(self) -> SortCriterion:
        stored = self.preferences.get(SORT_BY_PREFERENCE)
        if stored is None:
            return DEFAULT_CRITERION
        try:
            return SortCriterion(stored)
        except ValueError:
            return DEFAULT_CRITERION

    def _resolve_criterion(self, criterion: SortCriterion | None) -> SortCriterion:
        if criterion is None:
            return self.default_criterion()
        self.preferences.set(SORT_BY_PREFERENCE, int(criterion))
        return criterion

    def sort(
        self,
        nodes: Iterable[FileNode],
        criterion: SortCriterion | None = None,
    ) -> list[FileNode]:
        """Order one level of nodes, folders first.

        Passing a criterion stores it as the new default; omitting it uses the
        stored default. Children are left as they are, see ``resort``.
        """
        use_criterion = self._resolve_criterion(criterion)
        return sorted(nodes, key=_SORT_KEYS[use_criterion])

    def resort(
        self,
        root_nodes: Iterable[FileNode],
        criterion: SortCriterion,
    ) -> list[FileNode]:
        use_criterion = self._resolve_criterion(criterion)
        return self._resort_level(root_nodes, use_criterion)

    def _resort_level(
        self,
        nodes: Iterable[FileNode],
        criterion: SortCriterion,
    ) -> list[FileNode]:
        ordered = sorted(nodes, key=_SORT_KEYS[criterion])
        result: list[FileNode] = []
        for node in ordered:
            if node.children is not None:
                children = tuple(self._resort_level(node.children, criterion))
                node = node.model_copy(update={"children": children})
            result.append(node)
        return result

    def parse(self, payload: object) -> FileNode | None:
        if not isinstance(payload, Mapping):
            return None

        fields: dict[str, Any] = {
            "display_name": _optional_str(payload.get("display")),
            "name": _optional_str(payload.get("name")),
            "path": _optional_str(payload.get("path")),
            "size_bytes": _optional_int(payload.get("size")),
            "uploaded_at": _optional_timestamp(payload.get("date")),
        }
        raw_type = payload.get("type")
        if isinstance(raw_type, str):
            fields["kind"] = FileKind.from_tag(raw_type)
        raw_origin = payload.get("origin")
        if isinstance(raw_origin, str):
            fields["origin"] = FileOrigin.from_tag(raw_origin)
        analysis = payload.get("gcodeAnalysis")
        if isinstance(analysis, Mapping):
            fields["estimated_print_time_seconds"] = _optional_float(
                analysis.get("estimatedPrintTime")
            )

        raw_children = payload.get("children")
        if fields.get("kind") == FileKind.FOLDER and isinstance(raw_children, list):
            fields["children"] = tuple(self._parse_entries(raw_children))
        return FileNode(**fields)

    def _parse_entries(self, entries: list[Any]) -> list[FileNode]:
        parsed = [
            node
            for node in (self.parse(entry) for entry in entries)
            if node is not None
        ]
        return self.sort(parsed)

    def parse_listing(self, payload: object) -> FileListing:
        if not isinstance(payload, Mapping):
            return FileListing()
        raw_files = payload.get("files")
        files = self._parse_entries(raw_files) if isinstance(raw_files, list) else []
        return FileListing(
            files=tuple(files),
            free_bytes=_optional_int(payload.get("free")),
            total_bytes=_optional_int(payload.get("total")),
        )


def count_nodes(nodes: Iterable[FileNode]) -> int:
    total = 0
    for node in nodes:
        total += 1 + count_nodes(node.children or ())
    return total


def load_listing_file(path: Path, service: FileTreeService) -> FileListing:
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ListingLoadError(f"Could not read listing {path}: {exc}") from exc
    try:
        payload = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ListingLoadError(f"Listing {path} is not valid JSON: {exc}") from exc
    if isinstance(payload, list):
        # A bare array of entries, as found under a folder's "children".
        payload = {"files": payload}
    if not isinstance(payload, dict):
        raise ListingLoadError(f"Listing {path} must be a JSON object or array.")
    return service.parse_listing(payload)
