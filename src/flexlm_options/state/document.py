"""
flexlm-options — options document store.

File: src/flexlm_options/state/document.py

Purpose
- Single owner of the ordered directive sequence being edited.

What is included in this file
- Add / update / remove / move / clear / replace-all mutations.
- Read-only snapshots and typed queries (groups, host groups, case flag).
- One ``DocumentChange`` notification per mutation on ``changes``.

Functional requirements
- Ids come from the document's own ``DirectiveIdFactory``; duplicate or malformed
  caller-supplied ids are rejected.
- Unknown ids on update/remove/move are a no-op returning ``None``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import replace
from typing import TypeVar

from flexlm_options.domain.events import ChangeKind, DocumentChange, EventChannel
from flexlm_options.domain.ids import DirectiveIdFactory, validate_directive_id
from flexlm_options.domain.models import Directive, Group, GroupCaseInsensitive, HostGroup

D = TypeVar("D", bound=Directive)


class OptionsDocument:
    """Ordered, id-addressable directive list with change notifications."""

    def __init__(
        self,
        directives: Iterable[Directive] = (),
        *,
        id_factory: DirectiveIdFactory | None = None,
    ) -> None:
        self._directives: list[Directive] = []
        self._ids = id_factory if id_factory is not None else DirectiveIdFactory()
        self.changes: EventChannel[DocumentChange] = EventChannel("document.changes")
        initial = list(directives)
        if initial:
            self._directives = self._with_ids(initial)

    # -- readers -------------------------------------------------------------

    @property
    def directives(self) -> tuple[Directive, ...]:
        """Immutable snapshot in document order."""

        return tuple(self._directives)

    def __len__(self) -> int:
        return len(self._directives)

    def __iter__(self) -> Iterator[Directive]:
        return iter(tuple(self._directives))

    def get(self, directive_id: str) -> Directive | None:
        index = self.index_of(directive_id)
        return None if index is None else self._directives[index]

    def index_of(self, directive_id: str) -> int | None:
        for index, directive in enumerate(self._directives):
            if directive.directive_id == directive_id:
                return index
        return None

    def of_type(self, kind: type[D]) -> tuple[D, ...]:
        return tuple(d for d in self._directives if isinstance(d, kind))

    def groups(self) -> tuple[Group, ...]:
        return self.of_type(Group)

    def host_groups(self) -> tuple[HostGroup, ...]:
        return self.of_type(HostGroup)

    def group_names(self) -> tuple[str, ...]:
        return tuple(group.group_name for group in self.groups())

    def host_group_names(self) -> tuple[str, ...]:
        return tuple(group.group_name for group in self.host_groups())

    def has_group_case_insensitive(self) -> bool:
        return any(isinstance(d, GroupCaseInsensitive) for d in self._directives)

    # -- mutations -----------------------------------------------------------

    def add(self, directive: Directive, index: int | None = None) -> Directive:
        """Insert at ``index`` when it is within bounds, otherwise append."""

        stored = self._assign_id(directive, taken={d.directive_id for d in self._directives})
        if index is not None and 0 <= index < len(self._directives):
            self._directives.insert(index, stored)
        else:
            self._directives.append(stored)
        self.changes.publish(DocumentChange(ChangeKind.ADD, stored))
        return stored

    def update(self, directive_id: str, /, **changes: object) -> Directive | None:
        """Replace fields of one directive; its id and kind never change."""

        index = self.index_of(directive_id)
        if index is None:
            return None
        changes.pop("directive_id", None)
        updated = replace(self._directives[index], **changes)
        self._directives[index] = updated
        self.changes.publish(DocumentChange(ChangeKind.UPDATE, updated))
        return updated

    def remove(self, directive_id: str) -> Directive | None:
        index = self.index_of(directive_id)
        if index is None:
            return None
        removed = self._directives.pop(index)
        self.changes.publish(DocumentChange(ChangeKind.REMOVE, removed))
        return removed

    def move(self, directive_id: str, new_index: int) -> Directive | None:
        """Move a directive; ``new_index`` is clamped to the list bounds after removal."""

        index = self.index_of(directive_id)
        if index is None:
            return None
        moved = self._directives.pop(index)
        target = max(0, min(new_index, len(self._directives)))
        self._directives.insert(target, moved)
        self.changes.publish(DocumentChange(ChangeKind.MOVE, moved))
        return moved

    def clear(self) -> None:
        self._directives.clear()
        self.changes.publish(DocumentChange(ChangeKind.CLEAR))

    def replace_all(self, directives: Iterable[Directive]) -> None:
        """Swap the whole sequence; ids are assigned only where missing."""

        self._directives = self._with_ids(list(directives))
        self.changes.publish(DocumentChange(ChangeKind.REPLACE_ALL))

    def reset(self) -> None:
        """Start a fresh document: drop every directive and restart id numbering."""

        self._directives.clear()
        self._ids.reset()
        self.changes.publish(DocumentChange(ChangeKind.CLEAR))

    def set_group_case_insensitive(self, enabled: bool) -> bool:
        """Insert ``GROUPCASEINSENSITIVE ON`` at the top, or remove every occurrence.

        Returns ``True`` when the document changed.
        """

        if enabled:
            if self.has_group_case_insensitive():
                return False
            self.add(GroupCaseInsensitive(), index=0)
            return True
        flags = self.of_type(GroupCaseInsensitive)
        for flag in flags:
            self.remove(flag.directive_id)
        return bool(flags)

    # -- helpers -------------------------------------------------------------

    def _with_ids(self, directives: list[Directive]) -> list[Directive]:
        for directive in directives:
            if directive.directive_id:
                self._ids.observe(directive.directive_id)
        taken: set[str] = set()
        stored: list[Directive] = []
        for directive in directives:
            item = self._assign_id(directive, taken=taken)
            taken.add(item.directive_id)
            stored.append(item)
        return stored

    def _assign_id(self, directive: Directive, *, taken: set[str]) -> Directive:
        if not directive.directive_id:
            return replace(directive, directive_id=self._ids.next_id())
        if directive.directive_id in taken:
            raise ValueError(f"duplicate directive id: {directive.directive_id!r}")
        validate_directive_id(directive.directive_id, self._ids.prefix)
        self._ids.observe(directive.directive_id)
        return directive


__all__ = ["OptionsDocument"]
