from __future__ import annotations

import asyncio
from dataclasses import replace

from src.application.errors import ConflictError, NetworkError, StateConflictError
from src.application.notifications.types import NotificationType
from src.application.operator_context import OperatorContext
from src.application.use_cases.approvals.review_approval_request import ReviewDecision
from src.application.workflow.coordinator import APPROVAL_REQUEST
from src.domain.models.provisioning import ProvisioningForm
from src.domain.models.selection import NO_SELECTION, Provisioning
from src.domain.value_objects.request_status import AccessRequestStatus
from src.domain.value_objects.role import Role
from src.domain.value_objects.workflow_phase import WorkflowPhase


def _filled_form(coordinator, **overrides) -> ProvisioningForm:
    form = ProvisioningForm.from_prefill(coordinator.selection.prefill)
    form.company_id = "c1"
    form.username = "alopez"
    form.password = "s3cret-pass"
    form.password_confirmation = "s3cret-pass"
    for name, value in overrides.items():
        setattr(form, name, value)
    return form


def _types(coordinator) -> list[str]:
    return [n.type for n in coordinator.notifications.list_unread(coordinator.session_id)]


async def test_listing_moves_pending_requests_to_reviewing(coordinator_factory):
    coordinator = coordinator_factory()
    requests = await coordinator.access_requests()
    assert {r.id for r in requests} == {"r1", "r2", "r3"}
    assert coordinator.phase_of("r1") is WorkflowPhase.REVIEWING


async def test_approve_then_provision_creates_user_before_approving(coordinator_factory, backend):
    coordinator = coordinator_factory()
    before = await coordinator.pending_summary()

    opened = await coordinator.approve("r1")
    assert opened.ok and opened.outcome == "provisioning_opened"
    assert isinstance(coordinator.selection, Provisioning)
    assert coordinator.selection.prefill.email == "r1@example.com"
    assert coordinator.phase_of("r1") is WorkflowPhase.PROVISIONING_OPEN
    # Opening the step does not touch the backend
    assert backend.calls_to("create_user") == []
    assert backend.calls_to("review_access_request") == []

    result = await coordinator.submit_provisioning(_filled_form(coordinator))

    assert result.ok, result
    assert result.outcome == "approved"
    assert result.details == {"user_id": "u1"}
    mutations = [
        name for name, _ in backend.calls if name in {"create_user", "review_access_request"}
    ]
    assert mutations == ["create_user", "review_access_request"]
    assert backend.calls_to("review_access_request") == [("r1", "approved", None)]
    assert backend.access_requests["r1"].status is AccessRequestStatus.APPROVED
    assert coordinator.selection is NO_SELECTION
    assert coordinator.phase_of("r1") is WorkflowPhase.APPROVED
    after = await coordinator.pending_summary()
    assert after.total == before.total - 1
    assert _types(coordinator) == [NotificationType.ACCESS_REQUEST_APPROVED]


async def test_cancel_provisioning_leaves_request_pending(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")

    result = coordinator.cancel_provisioning()

    assert result.ok and result.outcome == "cancelled"
    assert coordinator.selection is NO_SELECTION
    assert coordinator.phase_of("r1") is WorkflowPhase.REVIEWING
    assert backend.access_requests["r1"].status is AccessRequestStatus.PENDING
    assert backend.calls_to("create_user") == []
    assert coordinator.cancel_provisioning().outcome == "noop"


async def test_bypass_request_is_approved_in_one_call(coordinator_factory, backend):
    coordinator = coordinator_factory()

    result = await coordinator.approve("r2")

    assert result.ok and result.outcome == "approved"
    assert len(backend.calls_to("bypass_setup")) == 1
    request_id, setup = backend.calls_to("bypass_setup")[0]
    assert request_id == "r2"
    assert setup.company_name == "Chen Testing LLC"
    assert setup.username == "bchen"
    assert backend.calls_to("create_user") == []
    assert backend.calls_to("review_access_request") == []
    assert result.details["company_id"] == "c2"
    assert coordinator.selection is NO_SELECTION
    assert coordinator.phase_of("r2") is WorkflowPhase.APPROVED
    assert _types(coordinator) == [NotificationType.BYPASS_SETUP_COMPLETED]
    companies = await coordinator.companies()
    assert [c.name for c in companies] == ["Acme Field Services", "Chen Testing LLC"]


async def test_reject_is_final(coordinator_factory, backend):
    coordinator = coordinator_factory()

    result = await coordinator.reject("r3", notes="Unknown applicant")

    assert result.ok and result.outcome == "rejected"
    assert backend.calls_to("review_access_request") == [("r3", "rejected", "Unknown applicant")]
    assert coordinator.phase_of("r3") is WorkflowPhase.REJECTED

    calls_before = len(backend.calls)
    again = await coordinator.approve("r3")
    assert not again.ok
    assert again.error_code == "invalid_state"
    assert again.status_code == 409
    assert len(backend.calls) == calls_before


async def test_legacy_mode_uses_post_endpoints(coordinator_factory, backend):
    coordinator = coordinator_factory(legacy_review=True)
    await coordinator.reject("r3")
    await coordinator.approve("r1")
    await coordinator.submit_provisioning(_filled_form(coordinator))

    assert backend.calls_to("reject_access_request") == ["r3"]
    assert backend.calls_to("approve_access_request") == ["r1"]
    assert backend.calls_to("review_access_request") == []


async def test_second_mutation_on_same_request_is_refused_while_in_flight(
    coordinator_factory, backend
):
    coordinator = coordinator_factory()
    await coordinator.access_requests()
    gate = asyncio.Event()
    backend.gates["bypass_setup"] = gate

    first = asyncio.create_task(coordinator.approve("r2"))
    while not backend.calls_to("bypass_setup"):
        await asyncio.sleep(0)
    assert coordinator.is_busy("r2")
    assert coordinator.phase_of("r2") is WorkflowPhase.BYPASS_APPROVING

    second = await coordinator.reject("r2")
    assert not second.ok
    assert second.error_code == "mutation_in_flight"

    gate.set()
    result = await first
    assert result.ok
    assert not coordinator.is_busy("r2")
    assert backend.calls_to("review_access_request") == []


async def test_approving_another_request_replaces_open_step(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")

    await coordinator.approve("r3")

    assert coordinator.selection.request_id == "r3"
    assert coordinator.phase_of("r1") is WorkflowPhase.REVIEWING
    assert coordinator.phase_of("r3") is WorkflowPhase.PROVISIONING_OPEN


async def _submit_with_create_user_paused(coordinator, backend):
    gate = asyncio.Event()
    backend.gates["create_user"] = gate
    task = asyncio.create_task(coordinator.submit_provisioning(_filled_form(coordinator)))
    while not backend.calls_to("create_user"):
        await asyncio.sleep(0)
    return gate, task


async def test_open_step_cannot_be_replaced_while_submitting(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")
    gate, submitting = await _submit_with_create_user_paused(coordinator, backend)

    replaced = await coordinator.approve("r3")

    assert not replaced.ok
    assert replaced.error_code == "mutation_in_flight"
    assert coordinator.selection.request_id == "r1"
    assert coordinator.phase_of("r3") is WorkflowPhase.REVIEWING

    gate.set()
    result = await submitting
    assert result.ok and result.details == {"user_id": "u1"}
    assert coordinator.selection is NO_SELECTION
    assert backend.access_requests["r1"].status is AccessRequestStatus.APPROVED

    # r3 gets its own account when provisioned afterwards
    await coordinator.approve("r3")
    assert coordinator.selection.created_user_id is None
    backend.gates.clear()
    second = await coordinator.submit_provisioning(_filled_form(coordinator, username="cdiaz"))
    assert second.ok and second.details == {"user_id": "u2"}
    assert [u.username for u in backend.calls_to("create_user")] == ["alopez", "cdiaz"]


async def test_open_step_cannot_be_cancelled_while_submitting(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")
    gate, submitting = await _submit_with_create_user_paused(coordinator, backend)

    cancelled = coordinator.cancel_provisioning()

    assert not cancelled.ok
    assert cancelled.error_code == "mutation_in_flight"
    assert cancelled.status_code == 409
    assert isinstance(coordinator.selection, Provisioning)

    gate.set()
    result = await submitting
    assert result.ok
    assert backend.access_requests["r1"].status is AccessRequestStatus.APPROVED
    assert coordinator.phase_of("r1") is WorkflowPhase.APPROVED


async def test_access_and_approval_items_with_same_id_do_not_block_each_other(
    coordinator_factory, backend
):
    backend.add_approval_request(replace(backend.approval_requests["a1"], id="r2"))
    coordinator = coordinator_factory()
    await coordinator.access_requests()
    gate = asyncio.Event()
    backend.gates["bypass_setup"] = gate
    approving = asyncio.create_task(coordinator.approve("r2"))
    while not backend.calls_to("bypass_setup"):
        await asyncio.sleep(0)

    reviewed = await coordinator.review_approval_request("r2", ReviewDecision.APPROVE)

    assert reviewed.ok, reviewed
    assert coordinator.is_busy("r2")
    assert not coordinator.is_busy("r2", APPROVAL_REQUEST)
    gate.set()
    assert (await approving).ok


async def test_approval_item_conflict_keeps_open_step(coordinator_factory, backend):
    backend.add_approval_request(replace(backend.approval_requests["a1"], id="r1"))
    coordinator = coordinator_factory()
    await coordinator.approve("r1")
    backend.fail("review_approval_request", StateConflictError("Already reviewed"))

    result = await coordinator.review_approval_request("r1", ReviewDecision.APPROVE)

    assert result.error_code == "state_conflict"
    assert coordinator.selection.request_id == "r1"
    assert coordinator.phase_of("r1") is WorkflowPhase.PROVISIONING_OPEN


async def test_invalid_form_keeps_step_open_with_draft(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")

    result = await coordinator.submit_provisioning(
        _filled_form(coordinator, password="short", password_confirmation="other")
    )

    assert not result.ok
    assert result.error_code == "validation_error"
    assert set(result.details) == {"password", "password_confirmation"}
    assert backend.calls_to("create_user") == []
    assert coordinator.selection.draft.password == "short"
    assert coordinator.phase_of("r1") is WorkflowPhase.PROVISIONING_OPEN
    assert _types(coordinator)[-1] == NotificationType.VALIDATION_FAILED


async def test_duplicate_username_keeps_step_open(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")
    backend.fail("create_user", ConflictError("Username already exists"))

    result = await coordinator.submit_provisioning(_filled_form(coordinator))

    assert not result.ok
    assert result.error_code == "conflict"
    assert isinstance(coordinator.selection, Provisioning)
    assert coordinator.selection.created_user_id is None
    assert coordinator.phase_of("r1") is WorkflowPhase.PROVISIONING_OPEN
    assert backend.calls_to("review_access_request") == []
    assert backend.access_requests["r1"].status is AccessRequestStatus.PENDING
    assert _types(coordinator)[-1] == NotificationType.ACTION_FAILED


async def test_failed_approval_retries_without_creating_user_again(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")
    backend.fail("review_access_request", NetworkError("Could not reach the server"))

    failed = await coordinator.submit_provisioning(_filled_form(coordinator))

    assert not failed.ok
    assert failed.error_code == "network_error"
    assert coordinator.selection.created_user_id == "u1"
    assert coordinator.phase_of("r1") is WorkflowPhase.PROVISIONING_OPEN

    retried = await coordinator.submit_provisioning(_filled_form(coordinator))

    assert retried.ok
    assert len(backend.calls_to("create_user")) == 1
    assert len(backend.calls_to("review_access_request")) == 2
    assert coordinator.phase_of("r1") is WorkflowPhase.APPROVED


async def test_request_reviewed_elsewhere_refreshes_lists(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.approve("r1")
    # Another operator rejects r1 in the meantime
    backend.access_requests["r1"].status = AccessRequestStatus.REJECTED
    backend.fail("create_user", StateConflictError("Access request already reviewed"))
    listed_before = len(backend.calls_to("list_access_requests"))

    result = await coordinator.submit_provisioning(_filled_form(coordinator))

    assert not result.ok
    assert result.error_code == "state_conflict"
    assert coordinator.selection is NO_SELECTION
    assert len(backend.calls_to("list_access_requests")) > listed_before
    assert _types(coordinator)[-1] == NotificationType.STATE_CONFLICT
    summary = await coordinator.pending_summary()
    assert summary.pending_access == 2


async def test_submit_without_open_step_fails(coordinator_factory):
    coordinator = coordinator_factory()
    form = ProvisioningForm(
        first_name="A", last_name="B", email="a@b.co", requested_role=Role.CLIENT
    )
    result = await coordinator.submit_provisioning(form)
    assert not result.ok
    assert result.error_code == "validation_error"


async def test_operator_without_review_role_is_refused(coordinator_factory, backend):
    coordinator = coordinator_factory(OperatorContext(user_id="d9", role=Role.DISPATCHER))
    result = await coordinator.approve("r2")
    assert not result.ok
    assert result.error_code == "forbidden"
    assert backend.calls_to("bypass_setup") == []


async def test_unknown_request_is_not_found(coordinator_factory):
    coordinator = coordinator_factory()
    result = await coordinator.reject("nope")
    assert result.error_code == "not_found"


async def test_unexpected_errors_become_failed_results(coordinator_factory, backend):
    coordinator = coordinator_factory()
    await coordinator.access_requests()
    backend.fail("review_access_request", RuntimeError("boom"))
    result = await coordinator.reject("r3")
    assert not result.ok
    assert result.error_code == "infrastructure_error"
    assert coordinator.phase_of("r3") is WorkflowPhase.REVIEWING


async def test_review_approval_request_denied(coordinator_factory, backend):
    manager = OperatorContext(user_id="m1", role=Role.MANAGER)
    coordinator = coordinator_factory(manager)
    visible = await coordinator.visible_approval_requests()
    assert [a.id for a in visible] == ["a1"]

    result = await coordinator.review_approval_request("a1", ReviewDecision.DENY)

    assert result.ok and result.outcome == "denied"
    assert backend.calls_to("review_approval_request") == [
        ("a1", "rejected", "Request denied by reviewer")
    ]
    assert await coordinator.visible_approval_requests() == []


async def test_review_outside_role_hierarchy_is_forbidden(coordinator_factory, backend):
    coordinator = coordinator_factory(OperatorContext(user_id="m1", role=Role.MANAGER))
    result = await coordinator.review_approval_request("a2", ReviewDecision.APPROVE)
    assert result.error_code == "forbidden"
    assert backend.calls_to("review_approval_request") == []


async def test_operations_overview_reads_cached_aggregates(coordinator_factory, backend):
    coordinator = coordinator_factory()
    overview = await coordinator.operations_overview()
    assert overview["stats"]["pendingAccessRequests"] == 3
    assert overview["budget_summary"]["allocated"] == 50000
    await coordinator.operations_overview()
    assert len(backend.calls_to("get_operations_stats")) == 1


async def test_pending_count_refetches_both_lists(coordinator_factory, backend):
    coordinator = coordinator_factory()
    assert await coordinator.pending_count() == 5
    backend.access_requests["r3"].status = AccessRequestStatus.REJECTED
    assert await coordinator.pending_count() == 4
    assert len(backend.calls_to("list_access_requests")) == 2
