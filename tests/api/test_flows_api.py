"""Flow, step, run and provider endpoints (organization-scoped)."""

import pytest

from app.infrastructure.persistence.repositories import FlowRunRepository


async def _create_flow(client, headers, **overrides) -> dict:
    body = {"name": "Deal won", "trigger": "crm.deal.won", **overrides}
    response = await client.post("/api/v1/flows", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_flows_require_authentication(client) -> None:
    response = await client.get("/api/v1/flows")
    assert response.status_code == 401
    assert response.json()["ok"] is False


async def test_invalid_token_is_401(client) -> None:
    response = await client.get(
        "/api/v1/flows", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


async def test_create_and_get_flow(client, auth_headers) -> None:
    created = await _create_flow(client, auth_headers, meta={"color": "green"})

    assert created["organizacion_id"] == "org-1"
    assert created["trigger"] == "crm.deal.won"
    assert created["active"] is True
    assert created["meta"] == {"color": "green"}
    assert created["created_by"] == "user-1"

    response = await client.get(f"/api/v1/flows/{created['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Deal won"


async def test_create_flow_validation(client, auth_headers) -> None:
    response = await client.post(
        "/api/v1/flows", json={"name": "x", "trigger": ""}, headers=auth_headers
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_flows_are_isolated_between_organizations(
    client, auth_headers, headers_for
) -> None:
    created = await _create_flow(client, auth_headers)
    other = headers_for("org-2")

    assert (await client.get(f"/api/v1/flows/{created['id']}", headers=other)).status_code == 404
    assert (await client.get("/api/v1/flows", headers=other)).json() == []
    response = await client.delete(f"/api/v1/flows/{created['id']}", headers=other)
    assert response.status_code == 404
    assert response.json()["code"] == "RESOURCE_NOT_FOUND"


async def test_list_update_delete_flow(client, auth_headers) -> None:
    created = await _create_flow(client, auth_headers)
    await _create_flow(client, auth_headers, name="Stock", trigger="stock.product.low")

    listed = await client.get(
        "/api/v1/flows", params={"trigger": "crm.deal.won"}, headers=auth_headers
    )
    assert [f["id"] for f in listed.json()] == [created["id"]]

    updated = await client.put(
        f"/api/v1/flows/{created['id']}", json={"active": False}, headers=auth_headers
    )
    assert updated.status_code == 200
    assert updated.json()["active"] is False
    assert updated.json()["name"] == "Deal won"

    inactive = await client.get(
        "/api/v1/flows", params={"active": "false"}, headers=auth_headers
    )
    assert [f["id"] for f in inactive.json()] == [created["id"]]

    deleted = await client.delete(f"/api/v1/flows/{created['id']}", headers=auth_headers)
    assert deleted.status_code == 204
    missing = await client.get(f"/api/v1/flows/{created['id']}", headers=auth_headers)
    assert missing.status_code == 404


async def test_replace_and_list_steps(client, auth_headers) -> None:
    flow = await _create_flow(client, auth_headers)
    url = f"/api/v1/flows/{flow['id']}/steps"

    response = await client.put(
        url,
        json={
            "steps": [
                {"position": 2, "type": "email.send", "config": {"to": "{{deal.owner}}"}},
                {"position": 1, "type": "slack.post", "config": {"template": "Won"}},
            ]
        },
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text

    steps = (await client.get(url, headers=auth_headers)).json()
    assert [(s["position"], s["type"]) for s in steps] == [(1, "slack.post"), (2, "email.send")]
    assert steps[0]["organizacion_id"] == "org-1"
    assert steps[1]["config"] == {"to": "{{deal.owner}}"}


async def test_replace_steps_rejects_gaps(client, auth_headers) -> None:
    flow = await _create_flow(client, auth_headers)
    response = await client.put(
        f"/api/v1/flows/{flow['id']}/steps",
        json={"steps": [{"position": 1, "type": "task.create"}, {"position": 3, "type": "task.create"}]},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "step positions must be contiguous starting at 1"


async def test_steps_of_unknown_flow_is_404(client, auth_headers) -> None:
    response = await client.get("/api/v1/flows/nope/steps", headers=auth_headers)
    assert response.status_code == 404


async def test_runs_listing_and_detail(client, auth_headers, session_factory) -> None:
    flow = await _create_flow(client, auth_headers)
    async with session_factory() as session, session.begin():
        run = await FlowRunRepository(session).create_queued(
            "org-1", flow["id"], {"payload": {"deal": {"name": "Acme"}}}
        )

    listed = await client.get("/api/v1/runs", headers=auth_headers)
    assert [r["id"] for r in listed.json()] == [run.id]

    detail = await client.get(f"/api/v1/runs/{run.id}", headers=auth_headers)
    assert detail.status_code == 200
    body = detail.json()
    assert body["status"] == "queued"
    assert body["flow_id"] == flow["id"]
    assert body["organizacion_id"] == "org-1"
    assert body["meta"]["payload"] == {"deal": {"name": "Acme"}}

    filtered = await client.get(
        "/api/v1/runs", params={"status": "ok"}, headers=auth_headers
    )
    assert filtered.json() == []


async def test_run_of_other_organization_is_404(
    client, headers_for, session_factory
) -> None:
    async with session_factory() as session, session.begin():
        run = await FlowRunRepository(session).create_finished("org-1", "ok", {})
    response = await client.get(f"/api/v1/runs/{run.id}", headers=headers_for("org-2"))
    assert response.status_code == 404


async def test_unknown_run_status_filter_is_400(client, auth_headers) -> None:
    response = await client.get(
        "/api/v1/runs", params={"status": "done"}, headers=auth_headers
    )
    assert response.status_code == 400


async def test_provider_upsert_never_returns_credentials(client, auth_headers) -> None:
    response = await client.put(
        "/api/v1/providers/slack",
        json={"status": "connected", "credentials": {"webhook_url": "https://hooks.test"}},
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["provider"] == "slack"
    assert body["connected"] is True
    assert "credentials" not in body

    listed = (await client.get("/api/v1/providers", headers=auth_headers)).json()
    assert [(p["provider"], p["status"]) for p in listed] == [("slack", "connected")]


@pytest.mark.parametrize(
    ("kind", "body"),
    [("telegram", {"status": "connected"}), ("slack", {"status": "broken"})],
)
async def test_provider_upsert_validation(client, auth_headers, kind, body) -> None:
    response = await client.put(f"/api/v1/providers/{kind}", json=body, headers=auth_headers)
    assert response.status_code == 400
