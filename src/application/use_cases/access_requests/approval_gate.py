from __future__ import annotations

from enum import Enum

from src.application.operator_context import OperatorContext
from src.domain.models.access_request import AccessRequest


class GateAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class GateDecision(str, Enum):
    REJECT = "reject"
    APPROVE_BYPASS = "approve_bypass"
    OPEN_PROVISIONING = "open_provisioning"


def decide(request: AccessRequest, action: GateAction, operator: OperatorContext) -> GateDecision:
    """Decide what acting on a pending access request leads to. No side effects."""
    operator.require_access_reviewer()
    request.ensure_pending()
    if action is GateAction.REJECT:
        return GateDecision.REJECT
    if request.is_dev_bypass:
        return GateDecision.APPROVE_BYPASS
    return GateDecision.OPEN_PROVISIONING
