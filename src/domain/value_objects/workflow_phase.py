from __future__ import annotations

from enum import Enum


class WorkflowPhase(str, Enum):
    IDLE = "idle"
    REVIEWING = "reviewing"
    REJECTED = "rejected"
    BYPASS_APPROVING = "bypass_approving"
    PROVISIONING_OPEN = "provisioning_open"
    PROVISIONING_SUCCESS = "provisioning_success"
    PROVISIONING_ABANDONED = "provisioning_abandoned"
    APPROVED = "approved"

    def can_move_to(self, target: WorkflowPhase) -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[WorkflowPhase, frozenset[WorkflowPhase]] = {
    WorkflowPhase.IDLE: frozenset({WorkflowPhase.REVIEWING}),
    WorkflowPhase.REVIEWING: frozenset(
        {
            WorkflowPhase.REVIEWING,
            WorkflowPhase.REJECTED,
            WorkflowPhase.BYPASS_APPROVING,
            WorkflowPhase.PROVISIONING_OPEN,
        }
    ),
    WorkflowPhase.BYPASS_APPROVING: frozenset({WorkflowPhase.APPROVED, WorkflowPhase.REVIEWING}),
    WorkflowPhase.PROVISIONING_OPEN: frozenset(
        {
            WorkflowPhase.PROVISIONING_OPEN,
            WorkflowPhase.PROVISIONING_SUCCESS,
            WorkflowPhase.PROVISIONING_ABANDONED,
        }
    ),
    WorkflowPhase.PROVISIONING_SUCCESS: frozenset(
        {WorkflowPhase.APPROVED, WorkflowPhase.PROVISIONING_OPEN}
    ),
    WorkflowPhase.PROVISIONING_ABANDONED: frozenset({WorkflowPhase.REVIEWING}),
    WorkflowPhase.REJECTED: frozenset(),
    WorkflowPhase.APPROVED: frozenset(),
}
