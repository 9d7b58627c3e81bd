"""Repositories against SQLite: organization scoping, step replacement, run transitions."""

from datetime import timedelta

import pytest

from app.application.dtos.flow import FlowStepCreate
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.infrastructure.persistence.models.flow_run import FlowRun
from app.infrastructure.persistence.repositories.flow_provider_repo import (
    FlowProviderRepository,
)
from app.infrastructure.persistence.repositories.flow_repo import FlowRepository
from app.infrastructure.persistence.repositories.flow_run_repo import (
    STALE_RUN_ERROR,
    FlowRunRepository,
)
from app.infrastructure.persistence.repositories.flow_step_repo import (
    FlowStepRepository,
)
from app.shared.enums import FlowRunStatus
from app.shared.utils.datetime import utc_now

TEST_ORG = "org-1"
OTHER_ORG = "org-2"


async def test_flow_crud_is_organization_scoped(db_session) -> None:
    repo = FlowRepository(db_session)
    flow = await repo.create_flow(TEST_ORG, " Lead alert ", " crm.lead.created ")

    assert flow.name == "Lead alert"
    assert flow.trigger == "crm.lead.created"
    assert flow.active is True
    assert await repo.get_by_id(flow.id, OTHER_ORG) is None
    with pytest.raises(ResourceNotFoundException):
        await repo.update_flow(flow.id, OTHER_ORG, active=False)

    updated = await repo.update_flow(flow.id, TEST_ORG, active=False, meta={"v": 2})
    assert updated.active is False
    assert updated.meta == {"v": 2}


async def test_create_flow_requires_trigger(db_session) -> None:
    with pytest.raises(ValidationException) as exc_info:
        await FlowRepository(db_session).create_flow(TEST_ORG, "x", "   ")
    assert exc_info.value.details == {"field": "trigger"}


async def test_get_active_by_trigger_filters_exactly(db_session) -> None:
    repo = FlowRepository(db_session)
    match = await repo.create_flow(TEST_ORG, "a", "crm.deal.won")
    await repo.create_flow(TEST_ORG, "inactive", "crm.deal.won", active=False)
    await repo.create_flow(TEST_ORG, "other trigger", "crm.deal.lost")
    await repo.create_flow(OTHER_ORG, "other org", "crm.deal.won")

    flows = await repo.get_active_by_trigger(TEST_ORG, "crm.deal.won")

    assert [f.id for f in flows] == [match.id]


async def test_list_flows_filters(db_session) -> None:
    repo = FlowRepository(db_session)
    await repo.create_flow(TEST_ORG, "a", "t.one")
    await repo.create_flow(TEST_ORG, "b", "t.two", active=False)

    assert len(await repo.list_by_organization(TEST_ORG)) == 2
    assert [f.name for f in await repo.list_by_organization(TEST_ORG, trigger="t.two")] == ["b"]
    assert [f.name for f in await repo.list_by_organization(TEST_ORG, active=True)] == ["a"]
    assert await repo.list_by_organization(OTHER_ORG) == []


async def test_replace_steps(db_session) -> None:
    flow = await FlowRepository(db_session).create_flow(TEST_ORG, "f", "t")
    repo = FlowStepRepository(db_session)

    await repo.replace_steps(
        flow.id,
        TEST_ORG,
        [FlowStepCreate(1, "slack.post", {"template": "a"}), FlowStepCreate(2, "task.create")],
    )
    steps = await repo.replace_steps(
        flow.id,
        TEST_ORG,
        [
            FlowStepCreate(2, "email.send", {"to": "x@y.z"}),
            FlowStepCreate(1, "whatsapp.send", {"to": "+1"}),
        ],
    )

    assert [(s.position, s.step_type) for s in steps] == [(1, "whatsapp.send"), (2, "email.send")]
    stored = await repo.list_for_flow(flow.id, TEST_ORG)
    assert [(s.position, s.step_type) for s in stored] == [(1, "whatsapp.send"), (2, "email.send")]
    assert stored[1].config == {"to": "x@y.z"}


@pytest.mark.parametrize("positions", [[1, 3], [0, 1], [1, 1], [2]])
async def test_replace_steps_rejects_gaps_and_duplicates(db_session, positions) -> None:
    flow = await FlowRepository(db_session).create_flow(TEST_ORG, "f", "t")
    with pytest.raises(ValidationException):
        await FlowStepRepository(db_session).replace_steps(
            flow.id, TEST_ORG, [FlowStepCreate(p, "task.create") for p in positions]
        )


async def test_replace_steps_of_foreign_flow_is_not_found(db_session) -> None:
    flow = await FlowRepository(db_session).create_flow(OTHER_ORG, "f", "t")
    with pytest.raises(ResourceNotFoundException):
        await FlowStepRepository(db_session).replace_steps(
            flow.id, TEST_ORG, [FlowStepCreate(1, "task.create")]
        )


async def test_delete_flow_keeps_runs_with_null_flow(session_factory) -> None:
    async with session_factory() as session, session.begin():
        flow = await FlowRepository(session).create_flow(TEST_ORG, "f", "t")
        await FlowStepRepository(session).replace_steps(
            flow.id, TEST_ORG, [FlowStepCreate(1, "task.create")]
        )
        run = await FlowRunRepository(session).create_queued(TEST_ORG, flow.id, {})

    async with session_factory() as session, session.begin():
        await FlowRepository(session).delete_flow(flow.id, TEST_ORG)

    async with session_factory() as session:
        kept = await FlowRunRepository(session).get_by_id(run.id, TEST_ORG)
        steps = await FlowStepRepository(session).list_for_flow(flow.id, TEST_ORG)
    assert kept is not None
    assert kept.flow_id is None
    assert steps == []


async def test_create_queued_run(db_session) -> None:
    flow = await FlowRepository(db_session).create_flow(TEST_ORG, "f", "t")
    run = await FlowRunRepository(db_session).create_queued(
        TEST_ORG, flow.id, {"payload": {"a": 1}}
    )
    assert run.status == FlowRunStatus.QUEUED.value
    assert run.started_at is not None
    assert run.started_at.tzinfo is not None
    assert run.payload == {"a": 1}
    assert run.attempts == 0


async def test_create_finished_requires_terminal_status(db_session) -> None:
    repo = FlowRunRepository(db_session)
    run = await repo.create_finished(TEST_ORG, "error", {"builtin": True}, error="missing_webhook")
    assert run.flow_id is None
    assert run.error == "missing_webhook"
    assert run.finished_at is not None
    with pytest.raises(ValidationException):
        await repo.create_finished(TEST_ORG, "queued", {})


async def test_mark_ok_and_error_never_rewrite_terminal_runs(db_session) -> None:
    flow = await FlowRepository(db_session).create_flow(TEST_ORG, "f", "t")
    repo = FlowRunRepository(db_session)
    run = await repo.create_queued(TEST_ORG, flow.id, {"payload": {}})
    steps = [{"position": 1, "type": "task.create", "status": "ok"}]

    assert await repo.mark_ok(run.id, TEST_ORG, steps=steps) is True
    assert await repo.mark_error(run.id, TEST_ORG, "late failure", steps=[]) is False
    assert await repo.mark_ok(run.id, OTHER_ORG, steps=[]) is False

    stored = await repo.get_by_id(run.id, TEST_ORG)
    assert stored.status == "ok"
    assert stored.error is None
    assert stored.finished_at is not None
    assert stored.meta["steps"] == steps


async def test_list_runs_filters(db_session) -> None:
    flow = await FlowRepository(db_session).create_flow(TEST_ORG, "f", "t")
    repo = FlowRunRepository(db_session)
    queued = await repo.create_queued(TEST_ORG, flow.id, {})
    await repo.create_finished(TEST_ORG, "ok", {})

    assert len(await repo.list_by_organization(TEST_ORG)) == 2
    by_status = await repo.list_by_organization(TEST_ORG, status="queued")
    assert [r.id for r in by_status] == [queued.id]
    by_flow = await repo.list_by_organization(TEST_ORG, flow_id=flow.id)
    assert [r.id for r in by_flow] == [queued.id]
    with pytest.raises(ValidationException):
        await repo.list_by_organization(TEST_ORG, status="done")


async def test_reap_stale_fail_and_requeue(db_session) -> None:
    now = utc_now()
    flow = await FlowRepository(db_session).create_flow(TEST_ORG, "f", "t")
    old = FlowRun(
        organization_id=TEST_ORG,
        flow_id=flow.id,
        status="running",
        started_at=now - timedelta(hours=2),
        claimed_at=now - timedelta(hours=1),
        meta={},
    )
    fresh = FlowRun(
        organization_id=TEST_ORG,
        flow_id=flow.id,
        status="running",
        started_at=now,
        claimed_at=now,
        meta={},
    )
    db_session.add_all([old, fresh])
    await db_session.flush()
    repo = FlowRunRepository(db_session)

    assert await repo.reap_stale(900, action="requeue", now=now) == [old.id]
    assert old.status == "queued"
    assert old.claimed_at is None

    old.status = "running"
    old.claimed_at = now - timedelta(hours=1)
    await db_session.flush()

    assert await repo.reap_stale(900, now=now) == [old.id]
    reaped = await repo.get_by_id(old.id, TEST_ORG)
    assert reaped.status == "error"
    assert reaped.error == STALE_RUN_ERROR
    assert fresh.status == "running"
    assert await repo.reap_stale(0, now=now) == []


async def test_release_claimed_requeues_only_running_runs(db_session) -> None:
    now = utc_now()
    flow = await FlowRepository(db_session).create_flow(TEST_ORG, "f", "t")
    claimed = FlowRun(
        organization_id=TEST_ORG,
        flow_id=flow.id,
        status="running",
        started_at=now,
        claimed_at=now,
        attempts=1,
        meta={},
    )
    finished = FlowRun(
        organization_id=OTHER_ORG,
        flow_id=None,
        status="ok",
        started_at=now,
        finished_at=now,
        meta={},
    )
    db_session.add_all([claimed, finished])
    await db_session.flush()
    repo = FlowRunRepository(db_session)

    assert await repo.release_claimed([claimed.id, finished.id]) == [claimed.id]
    assert claimed.status == "queued"
    assert claimed.claimed_at is None
    assert claimed.attempts == 1
    assert finished.status == "ok"
    assert await repo.release_claimed([]) == []


async def test_provider_upsert_keeps_credentials_when_omitted(db_session) -> None:
    repo = FlowProviderRepository(db_session)
    created = await repo.upsert(
        TEST_ORG, "slack", status="connected", credentials={"webhook_url": "https://h"}
    )
    assert created.credentials == {"webhook_url": "https://h"}

    updated = await repo.upsert(TEST_ORG, "slack", status="pending")

    assert updated.status == "pending"
    assert updated.credentials == {"webhook_url": "https://h"}
    assert [p.provider for p in await repo.list_by_organization(TEST_ORG)] == ["slack"]
    assert await repo.get_connection(OTHER_ORG, "slack") is None


async def test_provider_upsert_validates_kind_and_status(db_session) -> None:
    repo = FlowProviderRepository(db_session)
    with pytest.raises(ValidationException):
        await repo.upsert(TEST_ORG, "telegram", status="connected")
    with pytest.raises(ValidationException):
        await repo.upsert(TEST_ORG, "slack", status="broken")

