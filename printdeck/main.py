from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable

from PySide6.QtCore import QSettings

from printdeck.domain.models import FileNode, SortCriterion, format_byte_count
from printdeck.services.action_log import ActionLogService
from printdeck.services.file_tree import FileTreeService, ListingLoadError, load_listing_file
from printdeck.services.paths import settings_path
from printdeck.services.preferences import QSettingsPreferenceStore


SORT_CHOICES: dict[str, SortCriterion] = {
    "alphabetical": SortCriterion.ALPHABETICAL,
    "upload-date": SortCriterion.UPLOAD_DATE,
}


def render_tree(nodes: Iterable[FileNode], depth: int = 0) -> list[str]:
    lines: list[str] = []
    indent = "  " * depth
    for node in nodes:
        label = node.display_name or node.name or "?"
        if node.is_folder:
            lines.append(f"{indent}{label}/")
            lines.extend(render_tree(node.children or (), depth + 1))
            continue
        columns = [node.display_kind(), node.display_origin()]
        size = node.display_size()
        if size:
            columns.append(size)
        print_time = node.display_print_time()
        if print_time:
            columns.append(print_time)
        lines.append(f"{indent}{label}  [{', '.join(columns)}]")
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="printdeck",
        description="Show a printer host file listing as a sorted tree.",
    )
    parser.add_argument("listing", type=Path, help="Saved JSON listing (files API response).")
    parser.add_argument(
        "--sort",
        choices=tuple(SORT_CHOICES),
        default=None,
        help="Sort criterion; remembered for later runs (default: last used).",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="INI file holding preferences (default: user data directory).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    ini_path = args.settings or settings_path()
    settings = QSettings(str(ini_path), QSettings.Format.IniFormat)
    service = FileTreeService(preferences=QSettingsPreferenceStore(settings))
    action_log = ActionLogService()

    try:
        listing = load_listing_file(args.listing, service)
    except ListingLoadError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    action_log.log_event("files_loaded", source=str(args.listing), roots=len(listing.files))

    files = list(listing.files)
    if args.sort is not None:
        criterion = SORT_CHOICES[args.sort]
        files = service.resort(files, criterion)
        action_log.log_event("files_resorted", criterion=criterion.name.lower())

    for line in render_tree(files):
        print(line)
    if listing.free_bytes is not None:
        print(f"Free: {format_byte_count(listing.free_bytes)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
