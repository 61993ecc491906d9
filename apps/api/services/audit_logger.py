"""
Audit Logger

Structured logging for coaching-relationship and account actions:
pairing decisions, plan assignment, account status changes, deletions.

Format: one JSON object per line with:
- timestamp
- actor_hash (anonymized user id)
- action
- subject_hash (anonymized id of the affected user, when there is one)
- before/after state (where applicable)
- metadata
"""

import logging
import json
import hashlib
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import UUID

audit_logger = logging.getLogger("coachlink.audit")
audit_logger.setLevel(logging.INFO)

if not audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(message)s'))
    audit_logger.addHandler(handler)


def _anonymize_id(user_id: UUID) -> str:
    """Hash user ID for privacy in logs."""
    return hashlib.sha256(str(user_id).encode()).hexdigest()[:12]


def log_audit(
    action: str,
    actor_id: UUID,
    subject_id: Optional[UUID] = None,
    success: bool = True,
    before_state: Optional[Dict[str, Any]] = None,
    after_state: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None
) -> None:
    """
    Log an audit event.

    Args:
        action: Action type (e.g., "pairing.accepted", "plan.assigned")
        actor_id: UUID of the user performing the action (anonymized)
        subject_id: UUID of the affected user, if different (anonymized)
        success: Whether the action succeeded
        before_state: State before action (optional)
        after_state: State after action (optional)
        metadata: Additional context
        error: Error message if failed
    """
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "actor_hash": _anonymize_id(actor_id),
        "success": success,
    }

    if subject_id is not None:
        event["subject_hash"] = _anonymize_id(subject_id)

    if before_state:
        event["before"] = before_state

    if after_state:
        event["after"] = after_state

    if metadata:
        event["metadata"] = metadata

    if error:
        event["error"] = error

    audit_logger.info(json.dumps(event, default=str))


# =============================================================================
# PAIRING
# =============================================================================

def log_pairing_requested(client_id: UUID, trainer_id: UUID, request_id: UUID, change: bool) -> None:
    log_audit(
        action="pairing.change_requested" if change else "pairing.requested",
        actor_id=client_id,
        subject_id=trainer_id,
        metadata={"request_id": str(request_id)},
    )


def log_pairing_resolved(
    actor_id: UUID,
    client_id: UUID,
    request_id: UUID,
    accepted: bool,
    by_admin: bool = False
) -> None:
    log_audit(
        action="pairing.accepted" if accepted else "pairing.rejected",
        actor_id=actor_id,
        subject_id=client_id,
        metadata={"request_id": str(request_id), "by_admin": by_admin},
    )


def log_client_removed(trainer_id: UUID, client_id: UUID, plan_deleted: bool) -> None:
    log_audit(
        action="pairing.client_removed",
        actor_id=trainer_id,
        subject_id=client_id,
        after_state={"plan_deleted": plan_deleted},
    )


# =============================================================================
# PLANS
# =============================================================================

def log_plan_assigned(
    trainer_id: UUID,
    client_id: UUID,
    plan_id: UUID,
    from_template: bool,
    replaced: bool,
    total_plans: int
) -> None:
    log_audit(
        action="plan.assigned",
        actor_id=trainer_id,
        subject_id=client_id,
        after_state={
            "plan_id": str(plan_id),
            "from_template": from_template,
            "replaced_previous": replaced,
            "trainer_total_plans": total_plans,
        },
    )


# =============================================================================
# ACCOUNTS
# =============================================================================

def log_account_status(actor_id: UUID, subject_id: UUID, is_active: bool, source: str) -> None:
    """`source` is "self" or "admin"."""
    log_audit(
        action="account.reactivated" if is_active else "account.deactivated",
        actor_id=actor_id,
        subject_id=subject_id,
        metadata={"source": source},
    )


def log_account_deleted(admin_id: UUID, subject_id: UUID, role: str, unassigned_clients: int) -> None:
    log_audit(
        action="account.deleted",
        actor_id=admin_id,
        subject_id=subject_id,
        before_state={"role": role},
        metadata={"unassigned_clients": unassigned_clients},
    )


def log_role_changed(admin_id: UUID, subject_id: UUID, before: str, after: str) -> None:
    log_audit(
        action="account.role_changed",
        actor_id=admin_id,
        subject_id=subject_id,
        before_state={"role": before},
        after_state={"role": after},
    )
