# File: store.py
"""Persistence sink for FairShare.

Holds task and member records plus the reassignment audit log in memory,
optionally backed by a JSON file. The store is the only place records are
mutated, and every mutation runs under one lock:

- commit_reassignment: compare-and-set of a task's assignee, written
  together with its audit record (never one without the other). An
  optional check re-validates the target against the locked state.
- update_exclusion_periods: apply a list transform to a member's
  exclusion periods, read and written under the same lock

Any object satisfying PersistenceSink can stand in for FairShareStore
(e.g. a database-backed sink at the HTTP boundary).
"""

from __future__ import annotations

import copy
from datetime import date, datetime
import json
import os
import threading
from typing import TYPE_CHECKING, Any, Protocol

from . import const
from .data_builders import build_member, build_task

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .type_defs import AuditRecord, ExclusionPeriodData, MemberData, TaskData

    # (task, all tasks, all members) -> REJECT_* reason or None
    ReassignmentCheck = Callable[
        [TaskData, list[TaskData], list[MemberData]], str | None
    ]
    ExclusionTransform = Callable[
        [list[ExclusionPeriodData]], list[ExclusionPeriodData]
    ]


class StaleSuggestionError(Exception):
    """Raised by commit_reassignment when the task changed since it was read.

    Attributes:
        reason: REJECT_* constant describing what changed
    """

    def __init__(self, task_id: str, reason: str) -> None:
        """Initialize StaleSuggestionError."""
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"{reason}: {task_id}")


class PersistenceSink(Protocol):
    """Write path used by RebalanceManager."""

    def get_task(self, task_id: str) -> TaskData | None:
        """Return a copy of the task, or None if it no longer exists."""

    def get_member(self, member_id: str) -> MemberData | None:
        """Return a copy of the member, or None if unknown."""

    def list_tasks(self) -> list[TaskData]:
        """Return copies of all tasks."""

    def list_members(self) -> list[MemberData]:
        """Return copies of all members."""

    def commit_reassignment(
        self,
        task_id: str,
        expected_assignee: str,
        audit_record: AuditRecord,
        check: ReassignmentCheck | None = None,
    ) -> None:
        """Atomically move task_id to audit_record's new assignee.

        check runs inside the same atomic section; a non-None result aborts
        the write.

        Raises:
            StaleSuggestionError: If the task is gone, completed, no longer
                held by expected_assignee, or check rejects it
        """

    def update_exclusion_periods(
        self, member_id: str, transform: ExclusionTransform
    ) -> tuple[list[ExclusionPeriodData], list[ExclusionPeriodData]]:
        """Atomically replace a member's periods with transform(periods).

        Returns:
            Tuple of (periods before, periods after)

        Raises:
            KeyError: If member_id is unknown
        """


def _json_default(value: Any) -> str:
    """Serialize dates and datetimes as ISO strings."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class FairShareStore:
    """In-memory record store with optional JSON file backing.

    Records are keyed by id inside buckets (tasks, members) exactly like the
    saved file layout. Reads return deep copies so callers can never mutate
    stored state behind the lock.
    """

    def __init__(self, path: str | None = None) -> None:
        """Initialize the store.

        Args:
            path: JSON file used by load()/save(). None keeps data in memory only.
        """
        self._path = path
        self._lock = threading.Lock()
        self._data: dict[str, Any] = FairShareStore.get_default_structure()

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return the canonical empty data structure."""
        return {
            const.DATA_META: {const.DATA_META_STORAGE_VERSION: const.STORAGE_VERSION},
            const.DATA_TASKS: {},
            const.DATA_MEMBERS: {},
            const.DATA_AUDIT_LOG: [],
        }

    # ────────────────────────────────────────────────────────────────
    # Loading
    # ────────────────────────────────────────────────────────────────

    def upsert_tasks(self, raw_tasks: Iterable[dict[str, Any]]) -> None:
        """Validate and store task records (replacing same ids).

        Raises:
            EntityValidationError: If any record is invalid (nothing is stored)
        """
        tasks = [build_task(raw) for raw in raw_tasks]
        with self._lock:
            for task in tasks:
                self._data[const.DATA_TASKS][task[const.DATA_TASK_ID]] = task
        const.LOGGER.debug("Stored %s task(s)", len(tasks))

    def upsert_members(self, raw_members: Iterable[dict[str, Any]]) -> None:
        """Validate and store member records (replacing same ids).

        Raises:
            EntityValidationError: If any record is invalid (nothing is stored)
        """
        members = [build_member(raw) for raw in raw_members]
        with self._lock:
            for member in members:
                self._data[const.DATA_MEMBERS][member[const.DATA_MEMBER_ID]] = member
        const.LOGGER.debug("Stored %s member(s)", len(members))

    def load(self) -> None:
        """Load records from the backing file, if it exists."""
        if not self._path or not os.path.exists(self._path):
            const.LOGGER.info("No existing storage found. Starting empty")
            return

        with open(self._path, encoding="utf-8") as f:
            raw = json.load(f)

        self._data = FairShareStore.get_default_structure()
        self.upsert_tasks(raw.get(const.DATA_TASKS, {}).values())
        self.upsert_members(raw.get(const.DATA_MEMBERS, {}).values())
        with self._lock:
            self._data[const.DATA_AUDIT_LOG] = list(raw.get(const.DATA_AUDIT_LOG, []))
        const.LOGGER.debug(
            "Loaded storage: %s",
            {
                "tasks": len(self._data[const.DATA_TASKS]),
                "members": len(self._data[const.DATA_MEMBERS]),
                "audit_log": len(self._data[const.DATA_AUDIT_LOG]),
            },
        )

    def save(self) -> None:
        """Write all records to the backing file (atomic replace).

        Errors are logged, not raised; in-memory state stays authoritative.
        """
        if not self._path:
            return
        with self._lock:
            snapshot = copy.deepcopy(self._data)

        tmp_path = f"{self._path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, default=_json_default, indent=2)
            os.replace(tmp_path, self._path)
            const.LOGGER.debug("Data saved successfully to %s", self._path)
        except OSError as err:
            const.LOGGER.error(
                "Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._path,
            )
        except TypeError as err:
            const.LOGGER.error(
                "Failed to save storage due to non-serializable data: %s", err
            )

    # ────────────────────────────────────────────────────────────────
    # Reads
    # ────────────────────────────────────────────────────────────────

    def get_task(self, task_id: str) -> TaskData | None:
        """Return a copy of the task, or None if it no longer exists."""
        with self._lock:
            task = self._data[const.DATA_TASKS].get(task_id)
            return copy.deepcopy(task) if task is not None else None

    def get_member(self, member_id: str) -> MemberData | None:
        """Return a copy of the member, or None if unknown."""
        with self._lock:
            member = self._data[const.DATA_MEMBERS].get(member_id)
            return copy.deepcopy(member) if member is not None else None

    def list_tasks(self) -> list[TaskData]:
        """Return copies of all tasks, ordered by id."""
        with self._lock:
            tasks = self._data[const.DATA_TASKS]
            return [copy.deepcopy(tasks[task_id]) for task_id in sorted(tasks)]

    def list_members(self) -> list[MemberData]:
        """Return copies of all members, ordered by id."""
        with self._lock:
            members = self._data[const.DATA_MEMBERS]
            return [copy.deepcopy(members[member_id]) for member_id in sorted(members)]

    @property
    def audit_log(self) -> list[AuditRecord]:
        """Return a copy of the audit trail, oldest first."""
        with self._lock:
            return copy.deepcopy(self._data[const.DATA_AUDIT_LOG])

    # ────────────────────────────────────────────────────────────────
    # Writes
    # ────────────────────────────────────────────────────────────────

    def commit_reassignment(
        self,
        task_id: str,
        expected_assignee: str,
        audit_record: AuditRecord,
        check: ReassignmentCheck | None = None,
    ) -> None:
        """Atomically move task_id to audit_record's new assignee.

        The assignee check, the optional target check and both writes happen
        under one lock, so a concurrent commit sees the first one's result.
        check receives copies of the task and of every task and member.

        Raises:
            StaleSuggestionError: If the task is gone, completed, no longer
                held by expected_assignee, or check returns a REJECT_* reason
        """
        with self._lock:
            task = self._data[const.DATA_TASKS].get(task_id)
            if task is None:
                raise StaleSuggestionError(task_id, const.REJECT_TASK_NOT_FOUND)
            if task.get(const.DATA_TASK_COMPLETED_AT) is not None:
                raise StaleSuggestionError(task_id, const.REJECT_TASK_ALREADY_COMPLETED)
            if task.get(const.DATA_TASK_ASSIGNED_TO) != expected_assignee:
                raise StaleSuggestionError(
                    task_id, const.REJECT_TASK_ALREADY_REASSIGNED
                )
            if check is not None:
                rejection = check(
                    copy.deepcopy(task),
                    copy.deepcopy(list(self._data[const.DATA_TASKS].values())),
                    copy.deepcopy(list(self._data[const.DATA_MEMBERS].values())),
                )
                if rejection is not None:
                    raise StaleSuggestionError(task_id, rejection)

            task[const.DATA_TASK_ASSIGNED_TO] = audit_record[
                const.DATA_AUDIT_NEW_ASSIGNEE
            ]
            self._data[const.DATA_AUDIT_LOG].append(dict(audit_record))

    def update_exclusion_periods(
        self, member_id: str, transform: ExclusionTransform
    ) -> tuple[list[ExclusionPeriodData], list[ExclusionPeriodData]]:
        """Atomically replace a member's periods with transform(periods).

        transform may raise to abort; nothing is written in that case.

        Returns:
            Tuple of (periods before, periods after), both copies

        Raises:
            KeyError: If member_id is unknown
        """
        with self._lock:
            member = self._data[const.DATA_MEMBERS][member_id]
            before = copy.deepcopy(member[const.DATA_MEMBER_EXCLUSION_PERIODS])
            after = transform(copy.deepcopy(before))
            member[const.DATA_MEMBER_EXCLUSION_PERIODS] = copy.deepcopy(after)
        return before, copy.deepcopy(after)
