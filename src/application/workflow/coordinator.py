from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from src.application.errors import (
    AppError,
    InfrastructureError,
    InvalidStateError,
    MutationInFlight,
    NetworkError,
    NotFound,
    StateConflictError,
    ValidationError,
)
from src.application.events.dispatcher import dispatch_events
from src.application.events.models import (
    AccessRequestApprovedEvent,
    AccessRequestRejectedEvent,
    ApprovalRequestReviewedEvent,
    StaleRequestDetectedEvent,
    UserProvisionedEvent,
)
from src.application.interfaces.backend import FieldOpsBackend
from src.application.notifications.factory import BuiltNotification, build_notification
from src.application.notifications.types import NotificationType
from src.application.operator_context import OperatorContext
from src.application.use_cases.access_requests import (
    approval_gate,
    approve_bypass,
    finalize_approval,
    reject_access_request,
)
from src.application.use_cases.approvals import review_approval_request
from src.application.use_cases.approvals.pending_summary import (
    PendingSummary,
    summarize,
    visible_for,
)
from src.application.use_cases.provisioning import create_user
from src.domain.models.access_request import AccessRequest
from src.domain.models.approval_request import ApprovalRequest
from src.domain.models.company import Company
from src.domain.models.notification import Notification
from src.domain.models.provisioning import ProvisioningForm, ProvisioningPrefill
from src.domain.models.selection import NO_SELECTION, Provisioning, Selection
from src.domain.value_objects.workflow_phase import WorkflowPhase
from src.infrastructure.cache.query_cache import QueryCache, QueryKeys
from src.infrastructure.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

_TERMINAL_PHASES = {WorkflowPhase.APPROVED, WorkflowPhase.REJECTED}

ACCESS_REQUEST = "access_request"
APPROVAL_REQUEST = "approval_request"


@dataclass(slots=True)
class ActionResult:
    ok: bool
    outcome: str
    request_id: str | None = None
    notification: Notification | None = None
    error_code: str | None = None
    status_code: int = 200
    details: dict[str, Any] = field(default_factory=dict)


class ApprovalWorkflowCoordinator:
    """
    Drives the review of access and approval requests for one operator session.

    Every mutation goes through `_mutate`: it refuses re-submission while a
    mutation for the same request is in flight, converts any failure into a
    notification, and never lets an error escape to the caller.
    """

    def __init__(
        self,
        *,
        session_id: str,
        operator: OperatorContext,
        backend: FieldOpsBackend,
        cache: QueryCache,
        notifications: NotificationService,
        legacy_review: bool = False,
    ) -> None:
        self.session_id = session_id
        self.operator = operator
        self.backend = backend
        self.cache = cache
        self.notifications = notifications
        self.legacy_review = legacy_review
        self._selection: Selection = NO_SELECTION
        self._phases: dict[str, WorkflowPhase] = {}
        self._inflight: set[tuple[str, str]] = set()

        cache.register(QueryKeys.ACCESS_REQUESTS, backend.list_access_requests)
        cache.register(QueryKeys.APPROVAL_REQUESTS, backend.list_approval_requests)
        cache.register(QueryKeys.COMPANIES, backend.list_companies)
        cache.register(QueryKeys.OPERATIONS_STATS, backend.get_operations_stats)
        cache.register(QueryKeys.BUDGET_SUMMARY, backend.get_budget_summary)

    # State inspection

    @property
    def selection(self) -> Selection:
        return self._selection

    def phase_of(self, request_id: str) -> WorkflowPhase:
        return self._phases.get(request_id, WorkflowPhase.IDLE)

    def is_busy(self, request_id: str, kind: str = ACCESS_REQUEST) -> bool:
        return (kind, request_id) in self._inflight

    # Queries

    async def access_requests(self, *, refresh: bool = False) -> list[AccessRequest]:
        requests = await self.cache.fetch(QueryKeys.ACCESS_REQUESTS, force=refresh)
        for request in requests:
            if request.is_pending and self.phase_of(request.id) is WorkflowPhase.IDLE:
                self._move(request.id, WorkflowPhase.REVIEWING)
        return requests

    async def approval_requests(self, *, refresh: bool = False) -> list[ApprovalRequest]:
        return await self.cache.fetch(QueryKeys.APPROVAL_REQUESTS, force=refresh)

    async def visible_approval_requests(self) -> list[ApprovalRequest]:
        return visible_for(self.operator.role, await self.approval_requests())

    async def companies(self) -> list[Company]:
        return await self.cache.fetch(QueryKeys.COMPANIES)

    async def pending_summary(self, *, refresh: bool = False) -> PendingSummary:
        access = await self.access_requests(refresh=refresh)
        approvals = await self.approval_requests(refresh=refresh)
        return summarize(access, approvals)

    async def pending_count(self) -> int:
        """Badge count: pending access requests plus pending approval items, freshly fetched."""
        return (await self.pending_summary(refresh=True)).total

    async def operations_overview(self) -> dict[str, Any]:
        return {
            "stats": await self.cache.fetch(QueryKeys.OPERATIONS_STATS),
            "budget_summary": await self.cache.fetch(QueryKeys.BUDGET_SUMMARY),
        }

    # Access requests

    async def approve(self, request_id: str) -> ActionResult:
        async def operation() -> ActionResult:
            request = await self._find_access_request(request_id)
            decision = approval_gate.decide(
                request, approval_gate.GateAction.APPROVE, self.operator
            )
            if decision is approval_gate.GateDecision.APPROVE_BYPASS:
                return await self._approve_bypass(request)
            self._open_provisioning(request)
            return ActionResult(ok=True, outcome="provisioning_opened", request_id=request_id)

        return await self._mutate(request_id, ACCESS_REQUEST, operation)

    async def reject(self, request_id: str, *, notes: str | None = None) -> ActionResult:
        async def operation() -> ActionResult:
            request = await self._find_access_request(request_id)
            approval_gate.decide(request, approval_gate.GateAction.REJECT, self.operator)
            self._drop_selection_for(request_id)
            await reject_access_request.execute(
                self.backend,
                self.operator,
                request,
                legacy=self.legacy_review,
                notes=notes,
            )
            self._move(request_id, WorkflowPhase.REJECTED)
            await dispatch_events(
                self.cache,
                [
                    AccessRequestRejectedEvent(
                        request_id=request_id, actor_user_id=self.operator.user_id
                    )
                ],
            )
            return self._succeed(
                "rejected",
                request_id,
                build_notification(NotificationType.ACCESS_REQUEST_REJECTED, request_id=request_id),
            )

        return await self._mutate(request_id, ACCESS_REQUEST, operation)

    async def submit_provisioning(self, form: ProvisioningForm) -> ActionResult:
        selection = self._selection
        if not isinstance(selection, Provisioning):
            return self._fail(None, ValidationError("No access request is being provisioned"))
        request_id = selection.request_id

        async def operation() -> ActionResult:
            self._selection = selection.with_draft(form)
            request = await self._find_access_request(request_id)
            request.ensure_pending()
            user_id = selection.created_user_id
            if user_id is None:
                user = await create_user.execute(
                    self.backend, self.operator, form, await self.companies()
                )
                user_id = user.id
                current = self._provisioning_for(request_id)
                if current is not None:
                    self._selection = current.with_created_user(user_id)
                await dispatch_events(
                    self.cache,
                    [
                        UserProvisionedEvent(
                            request_id=request_id,
                            actor_user_id=self.operator.user_id,
                            user_id=user_id,
                        )
                    ],
                )
            self._move(request_id, WorkflowPhase.PROVISIONING_SUCCESS)
            try:
                await finalize_approval.execute(
                    self.backend,
                    self.operator,
                    request_id,
                    created_user_id=user_id,
                    legacy=self.legacy_review,
                )
            except AppError:
                # The account exists; keep the step open so only the approval is retried
                self._move(request_id, WorkflowPhase.PROVISIONING_OPEN)
                raise
            if self._provisioning_for(request_id) is not None:
                self._selection = NO_SELECTION
            self._move(request_id, WorkflowPhase.APPROVED)
            await dispatch_events(
                self.cache,
                [
                    AccessRequestApprovedEvent(
                        request_id=request_id,
                        actor_user_id=self.operator.user_id,
                        user_id=user_id,
                    )
                ],
            )
            return self._succeed(
                "approved",
                request_id,
                build_notification(
                    NotificationType.ACCESS_REQUEST_APPROVED,
                    request_id=request_id,
                    applicant_name=request.full_name,
                    user_id=user_id,
                ),
                user_id=user_id,
            )

        return await self._mutate(request_id, ACCESS_REQUEST, operation)

    def cancel_provisioning(self) -> ActionResult:
        selection = self._selection
        if not isinstance(selection, Provisioning):
            return ActionResult(ok=True, outcome="noop")
        if self.is_busy(selection.request_id):
            return self._fail(
                selection.request_id,
                MutationInFlight("Provisioning is being submitted and cannot be cancelled"),
            )
        if selection.created_user_id is not None:
            logger.warning(
                "Provisioning for %s closed after user %s was created; request stays pending",
                selection.request_id,
                selection.created_user_id,
            )
        self._drop_selection_for(selection.request_id)
        return ActionResult(ok=True, outcome="cancelled", request_id=selection.request_id)

    # Approval requests

    async def review_approval_request(
        self,
        request_id: str,
        decision: review_approval_request.ReviewDecision,
        *,
        notes: str | None = None,
    ) -> ActionResult:
        async def operation() -> ActionResult:
            request = await self._find_approval_request(request_id)
            updated = await review_approval_request.execute(
                self.backend, self.operator, request, decision, notes=notes
            )
            status = updated.status.value
            await dispatch_events(
                self.cache,
                [
                    ApprovalRequestReviewedEvent(
                        request_id=request_id,
                        actor_user_id=self.operator.user_id,
                        status=status,
                    )
                ],
            )
            return self._succeed(
                status,
                request_id,
                build_notification(
                    NotificationType.APPROVAL_REQUEST_REVIEWED, request_id=request_id, status=status
                ),
            )

        return await self._mutate(request_id, APPROVAL_REQUEST, operation)

    # Internals

    async def _approve_bypass(self, request: AccessRequest) -> ActionResult:
        self._drop_selection_for(request.id)
        self._move(request.id, WorkflowPhase.BYPASS_APPROVING)
        try:
            result = await approve_bypass.execute(self.backend, self.operator, request)
        except AppError:
            self._move(request.id, WorkflowPhase.REVIEWING)
            raise
        self._move(request.id, WorkflowPhase.APPROVED)
        await dispatch_events(
            self.cache,
            [
                AccessRequestApprovedEvent(
                    request_id=request.id,
                    actor_user_id=self.operator.user_id,
                    user_id=result.admin.id,
                    company_id=result.company.id,
                    via_bypass=True,
                )
            ],
        )
        return self._succeed(
            "approved",
            request.id,
            build_notification(
                NotificationType.BYPASS_SETUP_COMPLETED,
                request_id=request.id,
                company_name=result.company.name,
                company_id=result.company.id,
                username=result.admin.username,
                user_id=result.admin.id,
            ),
            user_id=result.admin.id,
            company_id=result.company.id,
        )

    def _open_provisioning(self, request: AccessRequest) -> None:
        current = self._selection
        if isinstance(current, Provisioning):
            if current.request_id == request.id:
                return
            if self.is_busy(current.request_id):
                raise MutationInFlight(
                    "Another provisioning is being submitted",
                    details={"request_id": current.request_id},
                )
            # Last write wins: the previous step is abandoned, not queued
            self._drop_selection_for(current.request_id)
        self._selection = Provisioning(
            request_id=request.id, prefill=ProvisioningPrefill.from_request(request)
        )
        self._move(request.id, WorkflowPhase.PROVISIONING_OPEN)

    def _provisioning_for(self, request_id: str) -> Provisioning | None:
        current = self._selection
        if isinstance(current, Provisioning) and current.request_id == request_id:
            return current
        return None

    def _drop_selection_for(self, request_id: str) -> None:
        if self._provisioning_for(request_id) is not None:
            self._selection = NO_SELECTION
            if self.phase_of(request_id) in {
                WorkflowPhase.PROVISIONING_OPEN,
                WorkflowPhase.PROVISIONING_SUCCESS,
            }:
                self._phases[request_id] = WorkflowPhase.PROVISIONING_ABANDONED
                self._move(request_id, WorkflowPhase.REVIEWING)

    async def _find_access_request(self, request_id: str) -> AccessRequest:
        if self.phase_of(request_id) in _TERMINAL_PHASES:
            raise InvalidStateError(
                f"Access request already {self.phase_of(request_id).value}",
                details={"request_id": request_id},
            )
        for request in await self.access_requests():
            if request.id == request_id:
                return request
        raise NotFound("Access request not found", details={"request_id": request_id})

    async def _find_approval_request(self, request_id: str) -> ApprovalRequest:
        for request in await self.approval_requests():
            if request.id == request_id:
                return request
        raise NotFound("Approval request not found", details={"request_id": request_id})

    def _move(self, request_id: str, target: WorkflowPhase) -> None:
        current = self.phase_of(request_id)
        if current is not target and not current.can_move_to(target):
            raise InvalidStateError(
                f"Cannot move request from {current.value} to {target.value}",
                details={"request_id": request_id},
            )
        self._phases[request_id] = target

    async def _mutate(
        self,
        request_id: str,
        kind: str,
        operation: Callable[[], Awaitable[ActionResult]],
    ) -> ActionResult:
        guard = (kind, request_id)
        if guard in self._inflight:
            return self._fail(
                request_id,
                MutationInFlight("This request is already being processed"),
            )
        self._inflight.add(guard)
        try:
            return await operation()
        except InvalidStateError as exc:
            # Known terminal locally; nothing to refetch
            return self._fail(request_id, exc)
        except StateConflictError as exc:
            if kind == ACCESS_REQUEST:
                self._drop_selection_for(request_id)
            await dispatch_events(
                self.cache, [StaleRequestDetectedEvent(request_id=request_id, kind=kind)]
            )
            return self._fail(request_id, exc)
        except AppError as exc:
            return self._fail(request_id, exc)
        except Exception as exc:
            logger.error(
                "Unexpected error processing %s %s: %s", kind, request_id, exc, exc_info=True
            )
            return self._fail(request_id, InfrastructureError("An unexpected error occurred"))
        finally:
            self._inflight.discard(guard)

    def _succeed(
        self, outcome: str, request_id: str, built: BuiltNotification, **details: Any
    ) -> ActionResult:
        notification = self.notifications.send_notification(self.session_id, built)
        return ActionResult(
            ok=True,
            outcome=outcome,
            request_id=request_id,
            notification=notification,
            details={k: v for k, v in details.items() if v is not None},
        )

    def _fail(self, request_id: str | None, exc: AppError) -> ActionResult:
        if isinstance(exc, ValidationError):
            built = build_notification(
                NotificationType.VALIDATION_FAILED,
                request_id=request_id,
                message=exc.message,
                fields=exc.details,
            )
        elif isinstance(exc, StateConflictError):
            built = build_notification(
                NotificationType.STATE_CONFLICT, request_id=request_id, message=exc.message
            )
        elif isinstance(exc, NetworkError):
            built = build_notification(
                NotificationType.NETWORK_ERROR, request_id=request_id, message=exc.message
            )
        else:
            built = build_notification(
                NotificationType.ACTION_FAILED, request_id=request_id, message=exc.message
            )
        notification = self.notifications.send_notification(self.session_id, built)
        return ActionResult(
            ok=False,
            outcome="failed",
            request_id=request_id,
            notification=notification,
            error_code=exc.code,
            status_code=exc.status_code,
            details=dict(exc.details or {}),
        )
