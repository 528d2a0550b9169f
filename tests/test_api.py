from datetime import timedelta

import pytest

from tempalias.core.clock import utcnow
from tempalias.db.models import AliasStatus


@pytest.mark.anyio
async def test_generate_redirects_and_stores_alias(client, store):
    response = await client.post("/api/generate")

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    aliases = await store.list_all()
    assert len(aliases) == 1
    assert aliases[0].status == AliasStatus.ACTIVE.value


@pytest.mark.anyio
async def test_generate_requires_post(client):
    response = await client.get("/api/generate")

    assert response.status_code == 405


@pytest.mark.anyio
async def test_generate_provider_failure_returns_error_text(client, provider, store):
    provider.fail_create = True

    response = await client.post("/api/generate")

    assert response.status_code == 500
    assert response.text == "zone rule limit reached"
    assert await store.list_all() == []


@pytest.mark.anyio
async def test_toggle_delete_recreate_flow(client, alias_service, store):
    alias = await alias_service.generate()

    response = await client.get("/api/toggle", params={"id": alias.id})
    assert response.status_code == 303
    assert (await store.get(alias.id)).status == AliasStatus.INACTIVE.value

    response = await client.get("/api/delete", params={"id": alias.id})
    assert response.status_code == 303
    deleted = await store.get(alias.id)
    assert deleted.status == AliasStatus.DELETED.value
    assert deleted.remote_rule_id == ""

    response = await client.get("/api/recreate", params={"id": alias.id})
    assert response.status_code == 303
    revived = await store.get(alias.id)
    assert revived.status == AliasStatus.ACTIVE.value
    assert revived.remote_rule_id


@pytest.mark.anyio
async def test_toggle_provider_failure_returns_500(client, alias_service, provider, store):
    alias = await alias_service.generate()
    provider.fail_update = True

    response = await client.get("/api/toggle", params={"id": alias.id})

    assert response.status_code == 500
    assert response.text == "rule update rejected"
    assert (await store.get(alias.id)).status == AliasStatus.ACTIVE.value


@pytest.mark.anyio
async def test_toggle_deleted_alias_conflicts(client, alias_service):
    alias = await alias_service.generate()
    await alias_service.delete(alias.id)

    response = await client.get("/api/toggle", params={"id": alias.id})

    assert response.status_code == 409


@pytest.mark.anyio
async def test_unknown_alias_returns_404_text(client):
    response = await client.get("/api/delete", params={"id": 777})

    assert response.status_code == 404
    assert response.text == "Alias not found: 777"


@pytest.mark.anyio
async def test_non_integer_id_is_rejected(client):
    response = await client.get("/api/toggle", params={"id": "abc"})

    assert response.status_code == 422
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text.startswith("Invalid id: ")


@pytest.mark.anyio
async def test_missing_id_returns_plain_text_422(client):
    response = await client.get("/api/delete")

    assert response.status_code == 422
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Invalid id: Field required"


@pytest.mark.anyio
async def test_renew_on_inactive_alias_redirects_without_change(client, alias_service, store):
    alias = await alias_service.generate()
    await alias_service.toggle(alias.id)
    before = (await store.get(alias.id)).expires_at

    response = await client.get("/api/renew", params={"id": alias.id})

    assert response.status_code == 303
    assert (await store.get(alias.id)).expires_at == before


@pytest.mark.anyio
async def test_renew_active_alias_extends_expiry(client, alias_service, store):
    alias = await alias_service.generate()

    response = await client.get("/api/renew", params={"id": alias.id})

    assert response.status_code == 303
    renewed = await store.get(alias.id)
    assert renewed.expires_at - alias.expires_at > timedelta(minutes=59)


@pytest.mark.anyio
async def test_list_aliases_json_orders_active_first(client, store):
    expires_at = utcnow() + timedelta(hours=1)
    gone = await store.create("gone@example.com", "", expires_at)
    await store.update_status_and_rule(gone, AliasStatus.DELETED, "")
    live = await store.create("live@example.com", "r1", expires_at)

    response = await client.get("/api/aliases")

    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body] == [live, gone]
    assert body[0]["status"] == "active"
    assert body[0]["remote_rule_id"] == "r1"
    assert body[1]["remote_rule_id"] == ""


@pytest.mark.anyio
async def test_index_renders_alias_list(client, alias_service):
    alias = await alias_service.generate()

    response = await client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert alias.address in response.text
    assert f"/api/toggle?id={alias.id}" in response.text


@pytest.mark.anyio
async def test_health_reports_components(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["components"]["database"] == "healthy"
    assert body["components"]["provider"] == "configured"
    assert body["components"]["sweeper"] == "stopped"


@pytest.mark.anyio
async def test_lifespan_starts_and_stops_sweeper(settings):
    from tempalias.main import create_app

    app = create_app(settings)

    async with app.router.lifespan_context(app):
        components = app.state.components
        assert components.sweeper.running
        assert await components.database.ping()

    assert not components.sweeper.running


@pytest.mark.anyio
async def test_lifespan_exits_when_database_cannot_open(settings, tmp_path):
    from tempalias.main import create_app

    app = create_app(settings.model_copy(update={"DB_PATH": str(tmp_path)}))

    with pytest.raises(SystemExit) as exc_info:
        async with app.router.lifespan_context(app):
            pass

    assert exc_info.value.code == 1
    assert not hasattr(app.state, "components")
