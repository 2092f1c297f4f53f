from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable

from printdeck.domain.models import FileNode, SortCriterion
from printdeck.services.action_log import ActionLogService
from printdeck.services.file_tree import FileTreeService, count_nodes, locate_in


@dataclass(frozen=True)
class FileBrowserState:
    files: tuple[FileNode, ...] = ()
    criterion: SortCriterion = SortCriterion.ALPHABETICAL
    selected: FileNode | None = None
    free_bytes: int | None = None
    total_bytes: int | None = None
    last_updated_utc: str = ""


Listener = Callable[[FileBrowserState], None]


def _now_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


class FileBrowserStore:
    """In-memory state behind a printer file browser.

    Each refresh replaces the whole tree, so the current selection is carried
    over by looking up its (origin, path, kind) in the new tree.
    """

    def __init__(
        self,
        service: FileTreeService,
        action_log: ActionLogService | None = None,
    ) -> None:
        self.service = service
        self.action_log = action_log
        self._state = FileBrowserState(criterion=service.default_criterion())
        self._listeners: list[Listener] = []

    def snapshot(self) -> FileBrowserState:
        return self._state

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def load_listing(self, payload: object) -> None:
        listing = self.service.parse_listing(payload)
        selected = self._relocate(listing.files)
        self._log("files_loaded", roots=len(listing.files), nodes=count_nodes(listing.files))
        if self._state.selected is not None:
            self._log(
                "selection_relocated",
                path=self._state.selected.path,
                found=selected is not None,
            )
        self._publish(
            replace(
                self._state,
                files=listing.files,
                criterion=self.service.default_criterion(),
                selected=selected,
                free_bytes=listing.free_bytes,
                total_bytes=listing.total_bytes,
                last_updated_utc=_now_utc(),
            )
        )

    def resort(self, criterion: SortCriterion) -> None:
        files = tuple(self.service.resort(self._state.files, criterion))
        self._log("files_resorted", criterion=criterion.name.lower())
        self._publish(
            replace(
                self._state,
                files=files,
                criterion=criterion,
                selected=self._relocate(files),
                last_updated_utc=_now_utc(),
            )
        )

    def select(self, node: FileNode | None) -> None:
        selected = None if node is None else locate_in(self._state.files, node)
        self._publish(replace(self._state, selected=selected, last_updated_utc=_now_utc()))

    def _relocate(self, files: tuple[FileNode, ...]) -> FileNode | None:
        previous = self._state.selected
        if previous is None:
            return None
        return locate_in(files, previous)

    def _log(self, action: str, **fields: object) -> None:
        if self.action_log is not None:
            self.action_log.log_event(action, **fields)

    def _publish(self, next_state: FileBrowserState) -> None:
        self._state = next_state
        for listener in list(self._listeners):
            listener(self._state)
