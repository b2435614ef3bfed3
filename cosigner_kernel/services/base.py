"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session-handling contract.  Services receive a
    SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.  CosignerOrchestrator owns the transaction, which
    is what makes each public cosigner operation atomic.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from cosigner_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        self.session = session
