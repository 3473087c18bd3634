"""In-process registry of live assignment workflows."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator, Optional

from ...models.domain import Session
from ..access import require_resolved
from ..orders.repository import OrderRepository, get_order_repository
from .workflow import AssignmentWorkflow

logger = logging.getLogger(__name__)


class WorkflowRegistry:
    """Owns workflow instances; each one is mutated under its own lock."""

    def __init__(self, repository: OrderRepository | None = None, risk_workers: int = 2) -> None:
        self.repository = repository or get_order_repository()
        self._workflows: dict[str, AssignmentWorkflow] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        self._background = ThreadPoolExecutor(max_workers=risk_workers, thread_name_prefix="risk-update")

    def create(self, session: Session, order_id: Optional[str] = None) -> AssignmentWorkflow:
        require_resolved(session)
        if order_id:
            order = self.repository.get(order_id)
            if order is None:
                raise LookupError(f"Order {order_id} not found")
            if session.is_driver and order.driver != session.user_id:
                raise PermissionError(f"Order {order_id} is not assigned to you")
        elif not session.is_admin:
            raise PermissionError("Drivers may only open workflows for their own orders")

        workflow = AssignmentWorkflow(
            order_id=order_id,
            repository=self.repository,
            background=self._background,
        )
        with self._lock:
            self._workflows[workflow.id] = workflow
            self._locks[workflow.id] = threading.Lock()
        logger.info(f"Workflow {workflow.id} opened{f' for order {order_id}' if order_id else ''}")
        return workflow

    def get(self, workflow_id: str) -> AssignmentWorkflow:
        with self._lock:
            workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise LookupError(f"Workflow {workflow_id} not found")
        return workflow

    @contextmanager
    def locked(self, workflow_id: str) -> Iterator[AssignmentWorkflow]:
        """Yield the workflow while holding its lock."""
        with self._lock:
            workflow = self._workflows.get(workflow_id)
            workflow_lock = self._locks.get(workflow_id)
        if workflow is None or workflow_lock is None:
            raise LookupError(f"Workflow {workflow_id} not found")
        with workflow_lock:
            yield workflow

    def delete(self, session: Session, workflow_id: str) -> None:
        with self.locked(workflow_id) as workflow:
            workflow.reset(session)
        with self._lock:
            self._workflows.pop(workflow_id, None)
            self._locks.pop(workflow_id, None)
        logger.info(f"Workflow {workflow_id} closed")

    def __len__(self) -> int:
        with self._lock:
            return len(self._workflows)

    def shutdown(self) -> None:
        with self._lock:
            workflows = list(self._workflows.values())
            self._workflows.clear()
            self._locks.clear()
        for workflow in workflows:
            workflow.renderer.clear()
        self._background.shutdown(wait=False)


@lru_cache()
def get_workflow_registry() -> WorkflowRegistry:
    return WorkflowRegistry()
