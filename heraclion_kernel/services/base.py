"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session contract for every write service in the
    kernel.  Services receive a SQLAlchemy ``Session`` and persist through
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.  The facades in
    ``heraclion_services`` own the transaction (``StorageClient.run``) and
    hand each attempt a fresh session.

Invariants enforced:
    - Services flush within the caller's transaction and never commit or
      roll back themselves.  This is what makes the payroll write and its
      cash mirror one atomic unit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from heraclion_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT hold read-only listing queries; those live in
          ``heraclion_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
