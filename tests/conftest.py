"""Shared fixtures for FairShare tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from typing import TYPE_CHECKING

import pytest

from fairshare.helpers import translation_helpers
from fairshare.utils import dt_utils

from tests.helpers import make_member, make_task

if TYPE_CHECKING:
    from fairshare.type_defs import MemberData, TaskData

# Wednesday of ISO week 2026-W04 (Mon 2026-01-19 .. Sun 2026-01-25)
REFERENCE_DATE = date(2026, 1, 21)


@pytest.fixture(autouse=True)
def reset_module_state() -> Iterator[None]:
    """Keep timezone and translation cache isolated between tests."""
    original_tz = dt_utils.get_default_timezone()
    translation_helpers.clear_translation_cache()
    yield
    dt_utils.set_default_timezone(original_tz)
    translation_helpers.clear_translation_cache()


@pytest.fixture
def reference_date() -> date:
    """Return the fixed reference date used across tests."""
    return REFERENCE_DATE


@pytest.fixture
def two_members() -> list[MemberData]:
    """Return two active members with no constraints."""
    return [make_member("alice", name="Alice"), make_member("bob", name="Bob")]


@pytest.fixture
def unbalanced_tasks() -> list[TaskData]:
    """Pending tasks giving alice 40 points and bob 10 points."""
    tasks = [
        make_task(f"a{i}", assigned_to="alice", weight=5, due_date=REFERENCE_DATE)
        for i in range(8)
    ]
    tasks += [
        make_task(f"b{i}", assigned_to="bob", weight=5, due_date=REFERENCE_DATE)
        for i in range(2)
    ]
    return tasks
