from datetime import timedelta

import pytest

from tempalias.core.clock import utcnow
from tempalias.core.exceptions import AliasNotFound, InvalidTransition, ProviderError, StorageError
from tempalias.db.models import AliasStatus
from tests.conftest import assert_close, hours_from_now


@pytest.mark.anyio
async def test_generate_creates_active_alias_with_rule(alias_service, provider):
    alias = await alias_service.generate()

    assert alias.status == AliasStatus.ACTIVE.value
    assert alias.remote_rule_id
    assert alias.address.endswith("@example.com")
    assert len(alias.address.split("@")[0]) == 8
    assert_close(alias.expires_at, hours_from_now(1))
    assert provider.rules[alias.remote_rule_id] == {"address": alias.address, "enabled": True}


@pytest.mark.anyio
async def test_generate_persists_nothing_when_provider_fails(alias_service, provider, store):
    provider.fail_create = True

    with pytest.raises(ProviderError):
        await alias_service.generate()

    assert await store.list_all() == []


@pytest.mark.anyio
@pytest.mark.parametrize("fail_delete", [False, True])
async def test_generate_removes_rule_when_insert_fails(alias_service, provider, store, monkeypatch, fail_delete):
    provider.fail_delete = fail_delete

    async def failing_create(address, remote_rule_id, expires_at):
        raise StorageError("Database insert failed: disk I/O error")

    monkeypatch.setattr(alias_service.store, "create", failing_create)

    with pytest.raises(StorageError):
        await alias_service.generate()

    assert provider.deleted == ["rule-1"]
    assert ("rule-1" in provider.rules) is fail_delete
    assert await store.list_all() == []


@pytest.mark.anyio
async def test_toggle_twice_round_trips(alias_service, provider):
    alias = await alias_service.generate()

    paused = await alias_service.toggle(alias.id)
    assert paused.status == AliasStatus.INACTIVE.value
    assert paused.remote_rule_id == alias.remote_rule_id
    assert provider.rules[alias.remote_rule_id]["enabled"] is False

    resumed = await alias_service.toggle(alias.id)
    assert resumed.status == AliasStatus.ACTIVE.value
    assert resumed.remote_rule_id == alias.remote_rule_id
    assert provider.rules[alias.remote_rule_id]["enabled"] is True


@pytest.mark.anyio
async def test_toggle_provider_failure_leaves_status_unchanged(alias_service, provider, store):
    alias = await alias_service.generate()
    provider.fail_update = True

    with pytest.raises(ProviderError):
        await alias_service.toggle(alias.id)

    unchanged = await store.get(alias.id)
    assert unchanged.status == AliasStatus.ACTIVE.value
    assert unchanged.remote_rule_id == alias.remote_rule_id


@pytest.mark.anyio
async def test_toggle_deleted_alias_is_rejected(alias_service, provider):
    alias = await alias_service.generate()
    await alias_service.delete(alias.id)
    calls_before = len(provider.calls)

    with pytest.raises(InvalidTransition):
        await alias_service.toggle(alias.id)

    assert len(provider.calls) == calls_before


@pytest.mark.anyio
async def test_toggle_missing_alias(alias_service):
    with pytest.raises(AliasNotFound):
        await alias_service.toggle(404)


@pytest.mark.anyio
@pytest.mark.parametrize("fail_delete", [False, True])
async def test_delete_clears_rule_regardless_of_provider(alias_service, provider, fail_delete):
    alias = await alias_service.generate()
    provider.fail_delete = fail_delete

    deleted = await alias_service.delete(alias.id)

    assert deleted.status == AliasStatus.DELETED.value
    assert deleted.remote_rule_id == ""
    assert provider.deleted == [alias.remote_rule_id]


@pytest.mark.anyio
async def test_delete_inactive_alias(alias_service, provider):
    alias = await alias_service.generate()
    await alias_service.toggle(alias.id)

    deleted = await alias_service.delete(alias.id)

    assert deleted.status == AliasStatus.DELETED.value
    assert provider.deleted == [alias.remote_rule_id]


@pytest.mark.anyio
async def test_delete_already_deleted_alias_is_noop(alias_service, provider):
    alias = await alias_service.generate()
    await alias_service.delete(alias.id)

    again = await alias_service.delete(alias.id)

    assert again.status == AliasStatus.DELETED.value
    assert provider.deleted == [alias.remote_rule_id]


@pytest.mark.anyio
async def test_recreate_deleted_alias_gets_new_rule(alias_service, provider, store):
    alias_id = await store.create("abc12345@example.com", "rule-original", utcnow() - timedelta(hours=3))
    await alias_service.delete(alias_id)

    revived = await alias_service.recreate(alias_id)

    assert revived.address == "abc12345@example.com"
    assert revived.status == AliasStatus.ACTIVE.value
    assert revived.remote_rule_id not in ("", "rule-original")
    assert_close(revived.expires_at, hours_from_now(1))
    assert ("create", "abc12345@example.com", True) in provider.calls


@pytest.mark.anyio
async def test_recreate_does_not_delete_previous_rule(alias_service, provider):
    alias = await alias_service.generate()
    await alias_service.toggle(alias.id)

    revived = await alias_service.recreate(alias.id)

    assert revived.status == AliasStatus.ACTIVE.value
    assert revived.remote_rule_id != alias.remote_rule_id
    assert provider.deleted == []


@pytest.mark.anyio
async def test_recreate_provider_failure_leaves_alias_deleted(alias_service, provider, store):
    alias = await alias_service.generate()
    await alias_service.delete(alias.id)
    provider.fail_create = True

    with pytest.raises(ProviderError):
        await alias_service.recreate(alias.id)

    unchanged = await store.get(alias.id)
    assert unchanged.status == AliasStatus.DELETED.value
    assert unchanged.remote_rule_id == ""


@pytest.mark.anyio
async def test_renew_extends_active_alias(alias_service, store):
    alias = await alias_service.generate()

    assert await alias_service.renew(alias.id) is True

    renewed = await store.get(alias.id)
    assert_close(renewed.expires_at, alias.expires_at + timedelta(hours=1), timedelta(seconds=1))


@pytest.mark.anyio
async def test_renew_is_noop_for_inactive_and_deleted(alias_service, store):
    paused = await alias_service.generate()
    await alias_service.toggle(paused.id)
    gone = await alias_service.generate()
    await alias_service.delete(gone.id)

    before = {a.id: (a.status, a.expires_at) for a in await store.list_all()}

    assert await alias_service.renew(paused.id) is False
    assert await alias_service.renew(gone.id) is False
    assert await alias_service.renew(9999) is False

    after = {a.id: (a.status, a.expires_at) for a in await store.list_all()}
    assert after == before


@pytest.mark.anyio
async def test_expire_without_rule_skips_provider(alias_service, provider, store):
    alias_id = await store.create("norule@example.com", "", utcnow() - timedelta(seconds=1))

    await alias_service.expire(await store.get(alias_id))

    expired = await store.get(alias_id)
    assert expired.status == AliasStatus.DELETED.value
    assert provider.calls == []
