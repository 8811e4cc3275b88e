# Overview: Order status state machine and the post-commit side effects of each transition.

r"""
Pink Post Order Lifecycle Service

================================================================================
STATE MACHINE
================================================================================

    pending -> confirmed -> scheduled -> in_progress -> completed
        \__________\___________\____________\________-> cancelled

RULES:
1. Forward moves may skip steps (an admin can mark a pending order completed)
2. No backwards moves
3. cancelled is reachable from every non-terminal state
4. completed and cancelled are terminal
5. Setting the current status again is allowed; it re-runs only the
   idempotent completion tasks (payment capture, installation)

SIDE EFFECTS:
The status write commits first. Side effects then run as a list of
PostCommitTask, each in its own failure boundary: an exception is rolled
back and logged, and the next task still runs. Nothing a task does can undo
the status change.

    target != pending   -> customer notification
    target == completed -> payment capture, installation, completion email
================================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..extensions import db
from ..models import Order
from . import email_service, installation_service, notification_service, payment_service
from .concurrency import lock_for_update
from pinkpost.time_utils import utcnow
from pinkpost.validation import NotFoundError, ValidationError, coerce_datetime

logger = logging.getLogger(__name__)


ORDER_STATUSES = ("pending", "confirmed", "scheduled", "in_progress", "completed", "cancelled")
FORWARD_CHAIN = ("pending", "confirmed", "scheduled", "in_progress", "completed")
TERMINAL_STATUSES = {"completed", "cancelled"}


class LifecycleError(ValueError):
    """
    Raised when an invalid lifecycle transition is attempted.

    This is a domain error, not a technical error. It indicates
    that the caller attempted an operation that violates business rules.
    """
    pass


def validate_status(status: str) -> None:
    if status not in ORDER_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(ORDER_STATUSES)}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    validate_status(from_status)
    validate_status(to_status)

    if from_status == to_status:
        return True

    if from_status in TERMINAL_STATUSES:
        return False

    if to_status == "cancelled":
        return True

    return FORWARD_CHAIN.index(to_status) > FORWARD_CHAIN.index(from_status)


def can_edit_order(order: Order) -> bool:
    return order.status not in TERMINAL_STATUSES


def can_cancel_order(order: Order) -> bool:
    """Customers may cancel only before the installation is scheduled."""
    return order.status in ("pending", "confirmed")


# =============================================================================
# POST-COMMIT TASKS
# =============================================================================

@dataclass(frozen=True)
class PostCommitTask:
    name: str
    run: Callable[[], object]


@dataclass
class TaskOutcome:
    name: str
    ok: bool
    error: str | None = None


def run_post_commit_tasks(tasks: list[PostCommitTask]) -> list[TaskOutcome]:
    """
    Run each task in its own failure boundary.

    A task that raises is rolled back and logged; the remaining tasks run.
    """
    outcomes = []
    for task in tasks:
        try:
            task.run()
            db.session.commit()
            outcomes.append(TaskOutcome(name=task.name, ok=True))
        except Exception as exc:  # one failed side effect must not block the rest
            db.session.rollback()
            logger.exception("Post-commit task %s failed", task.name)
            outcomes.append(TaskOutcome(name=task.name, ok=False, error=str(exc)))
    return outcomes


def _completion_tasks(order: Order, *, first_completion: bool) -> list[PostCommitTask]:
    tasks = [
        PostCommitTask("payment_capture", lambda: payment_service.capture_order_payment(order)),
        PostCommitTask("installation", lambda: installation_service.materialize_installation(order)),
    ]
    if first_completion:
        tasks.append(PostCommitTask("completion_email", lambda: email_service.send_installation_complete(order)))
    return tasks


def build_transition_tasks(order: Order, new_status: str, *, status_changed: bool) -> list[PostCommitTask]:
    tasks = []
    if status_changed and new_status != "pending":
        tasks.append(PostCommitTask(
            "notification",
            lambda: notification_service.create_order_notification(
                order.user_id, order.order_number, order.id, new_status
            ),
        ))
    if new_status == "completed":
        tasks.extend(_completion_tasks(order, first_completion=status_changed))
    return tasks


# =============================================================================
# TRANSITION
# =============================================================================

def transition_order_status(
    order_id: int,
    new_status: str | None = None,
    *,
    scheduled_date=None,
    payment_status: str | None = None,
) -> tuple[Order, list[TaskOutcome]]:
    """
    Apply an admin update to an order and run its side effects.

    Args:
        new_status: target status; None leaves the status alone
        scheduled_date: ISO string or datetime
        payment_status: manual correction, allowed even on terminal orders

    Raises:
        ValidationError: unknown status / payment status, bad date
        NotFoundError: order missing
        LifecycleError: transition not allowed from the current status
    """
    if new_status is not None:
        validate_status(new_status)
    if payment_status is not None and payment_status not in payment_service.PAYMENT_STATUSES:
        raise ValidationError(
            f"Invalid payment_status '{payment_status}'. Must be one of: {', '.join(payment_service.PAYMENT_STATUSES)}"
        )
    scheduled_at = coerce_datetime("scheduled_date", scheduled_date) if scheduled_date else None

    order = lock_for_update(db.session.query(Order).filter(Order.id == order_id)).first()
    if order is None:
        raise NotFoundError("Order not found")

    status_changed = False
    if new_status is not None:
        if not can_transition(order.status, new_status):
            raise LifecycleError(
                f"Cannot change order {order.order_number} from '{order.status}' to '{new_status}'"
            )
        status_changed = new_status != order.status
    elif scheduled_at is not None and order.status in TERMINAL_STATUSES:
        raise LifecycleError(f"Cannot reschedule a {order.status} order")

    if status_changed:
        order.status = new_status
        if new_status == "completed":
            order.completed_date = utcnow()
    if scheduled_at is not None:
        order.scheduled_date = scheduled_at
    if payment_status is not None:
        order.payment_status = payment_status

    db.session.commit()
    if status_changed:
        logger.info("Order %s moved to %s", order.order_number, new_status)

    tasks = build_transition_tasks(order, order.status, status_changed=status_changed) if new_status else []
    outcomes = run_post_commit_tasks(tasks)
    db.session.refresh(order)
    return order, outcomes
