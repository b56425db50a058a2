"""Test helpers for FairShare tests.

Re-exports record factories for convenient imports:

    from tests.helpers import make_member, make_period, make_task
"""

from tests.helpers.factories import make_member, make_period, make_task, profile

__all__ = ["make_member", "make_period", "make_task", "profile"]
