"""
Capability handles over the record store.

Public flows (menu, locations) get a restricted handle that may only read
public data. Order, reservation, chat and admin flows get a privileged
handle. Operations declare the capability they need with
``require_privileged`` so a wiring mistake fails loudly instead of silently
writing through a public path.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.orm import Session

from tavola_shared.db import get_session


class StorePrivilegeError(RuntimeError):
    """A restricted handle was used for a privileged operation."""


@dataclass
class StoreHandle:
    session: Session
    privileged: bool = False

    def require_privileged(self, operation: str) -> Session:
        if not self.privileged:
            raise StorePrivilegeError(f"'{operation}' requires a privileged store handle")
        return self.session


@contextmanager
def privileged_store() -> Iterator[StoreHandle]:
    with get_session() as session:
        yield StoreHandle(session=session, privileged=True)


@contextmanager
def restricted_store() -> Iterator[StoreHandle]:
    with get_session() as session:
        yield StoreHandle(session=session, privileged=False)
