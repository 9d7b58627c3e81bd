"""Health endpoint."""

from unittest.mock import AsyncMock, patch


async def test_health_pings_database(client) -> None:
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "status": "ok", "database": "ok"}


async def test_health_degraded_when_database_unreachable(client) -> None:
    with patch(
        "app.infrastructure.persistence.database.ping_db",
        AsyncMock(side_effect=ConnectionRefusedError("refused")),
    ):
        response = await client.get("/api/v1/health")
    assert response.status_code == 503
    assert response.json() == {"ok": False, "status": "degraded", "database": "error"}


async def test_request_id_is_echoed(client) -> None:
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"


async def test_lifespan_wires_shared_services() -> None:
    from app.core.lifespan import create_lifespan
    from app.main import create_app

    fresh = create_app()
    async with create_lifespan(fresh):
        assert fresh.state.http_client is not None
        assert fresh.state.dispatcher is not None
        assert fresh.state.authenticator is not None
        assert fresh.state.builtin_notifier.handles("crm.deal.won")
        assert getattr(fresh.state, "flow_scheduler", None) is None
    assert fresh.state.http_client is None
