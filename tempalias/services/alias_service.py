"""
Alias Lifecycle Service

Drives alias state transitions, keeping the local record and the
Cloudflare rule in step:

    (none)          --generate-->  active
    active          --toggle---->  inactive   (rule disabled, kept)
    inactive        --toggle---->  active     (rule enabled)
    active/inactive --delete---->  deleted    (rule deleted, id cleared)
    any             --recreate-->  active     (new rule, fresh expiry)
    active          --renew----->  active     (expiry extended)
    active          --expire---->  deleted    (sweeper)

Generate, toggle and recreate call Cloudflare first and only write locally
on success; a rule created by generate whose insert then fails is deleted
again. Delete and expire always write locally; a failed rule deletion
is logged and left as an orphaned rule.
"""

from datetime import timedelta
from typing import List

from tempalias.core.clock import Clock, utcnow
from tempalias.core.exceptions import InvalidTransition, ProviderError, StorageError
from tempalias.core.logging import get_logger
from tempalias.core.metrics import provider_cleanup_failures_total, record_transition
from tempalias.db.alias_store import AliasStore
from tempalias.db.models import Alias, AliasStatus
from tempalias.services.address_generator import AddressGenerator
from tempalias.services.cloudflare import RuleProvider

logger = get_logger(__name__)

DEFAULT_TTL = timedelta(hours=1)


class AliasLifecycleService:
    """Service for managing temporary aliases."""
    
    def __init__(
        self,
        store: AliasStore,
        provider: RuleProvider,
        address_generator: AddressGenerator,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.provider = provider
        self.address_generator = address_generator
        self.ttl = ttl
        self.clock = clock
    
    async def list_aliases(self) -> List[Alias]:
        """All aliases in display order."""
        return await self.store.list_all()
    
    async def get(self, alias_id: int) -> Alias:
        return await self.store.get(alias_id)
    
    async def generate(self) -> Alias:
        """
        Create a new alias backed by an enabled rule.
        
        If the insert fails after Cloudflare accepted the rule, the rule is
        deleted again (best-effort) before the storage error propagates.
        
        Returns:
            Alias: The stored alias
        
        Raises:
            ProviderError: If Cloudflare rejects the rule (nothing is stored)
            StorageError: If the insert fails
        """
        address = self.address_generator.generate()
        rule_id = await self.provider.create_rule(address, enabled=True)
        
        try:
            alias_id = await self.store.create(address, rule_id, self.clock() + self.ttl)
        except StorageError:
            await self._delete_rule_best_effort(rule_id, address=address)
            raise
        
        record_transition("generate")
        logger.info("Alias generated", alias_id=alias_id, address=address, rule_id=rule_id)
        
        return await self.store.get(alias_id)
    
    async def toggle(self, alias_id: int) -> Alias:
        """
        Flip an alias between active and inactive.
        
        Raises:
            AliasNotFound: If the alias does not exist
            InvalidTransition: If the alias is deleted
            ProviderError: If the rule update fails (local state untouched)
        """
        alias = await self.store.get(alias_id)
        if alias.is_deleted:
            raise InvalidTransition(alias_id, alias.status, "toggle")
        
        enable = not alias.is_active
        new_status = AliasStatus.ACTIVE if enable else AliasStatus.INACTIVE
        
        await self.provider.set_rule_enabled(alias.rule_id, enable)
        await self.store.update_status_and_rule(alias_id, new_status, alias.rule_id)
        
        record_transition("toggle")
        logger.info("Alias toggled", alias_id=alias_id, address=alias.address, status=new_status.value)
        return await self.store.get(alias_id)
    
    async def delete(self, alias_id: int) -> Alias:
        """
        Soft-delete an alias and remove its rule.
        
        Deleting an already deleted alias changes nothing.
        
        Raises:
            AliasNotFound: If the alias does not exist
        """
        alias = await self.store.get(alias_id)
        if alias.is_deleted:
            logger.info("Alias already deleted", alias_id=alias_id)
            return alias
        
        await self._retire(alias)
        record_transition("delete")
        logger.info("Alias deleted", alias_id=alias_id, address=alias.address)
        return await self.store.get(alias_id)
    
    async def recreate(self, alias_id: int) -> Alias:
        """
        Reactivate an alias under its existing address with a new rule.
        
        The previous rule, if any, is not deleted first.
        
        Raises:
            AliasNotFound: If the alias does not exist
            ProviderError: If the new rule cannot be created (local state untouched)
        """
        alias = await self.store.get(alias_id)
        
        rule_id = await self.provider.create_rule(alias.address, enabled=True)
        await self.store.reset_for_recreate(alias_id, rule_id, self.clock() + self.ttl)
        
        record_transition("recreate")
        logger.info("Alias recreated", alias_id=alias_id, address=alias.address, rule_id=rule_id)
        return await self.store.get(alias_id)
    
    async def renew(self, alias_id: int) -> bool:
        """
        Extend an active alias's expiry by one TTL.
        
        Returns:
            bool: False if the alias was missing or not active (no change)
        """
        renewed = await self.store.extend_expiry(alias_id, self.ttl)
        
        if renewed:
            record_transition("renew")
            logger.info("Alias renewed", alias_id=alias_id, ttl_seconds=self.ttl.total_seconds())
        else:
            logger.info("Alias not renewed: not active", alias_id=alias_id)
        return renewed
    
    async def expire(self, alias: Alias) -> None:
        """
        Expire an alias found by the sweeper.
        
        Raises:
            StorageError: If the local update fails
        """
        await self._retire(alias)
        record_transition("expire")
        logger.info("Alias expired", alias_id=alias.id, address=alias.address)
    
    async def _retire(self, alias: Alias) -> None:
        if alias.rule_id:
            await self._delete_rule_best_effort(alias.rule_id, alias_id=alias.id, address=alias.address)
        await self.store.update_status_and_rule(alias.id, AliasStatus.DELETED, "")
    
    async def _delete_rule_best_effort(self, rule_id: str, **context) -> None:
        # Failure leaves an orphaned rule; callers carry on regardless.
        try:
            await self.provider.delete_rule(rule_id)
        except ProviderError as e:
            provider_cleanup_failures_total.inc()
            logger.warning(
                "Failed to delete rule, leaving it orphaned",
                rule_id=rule_id,
                error=e.message,
                **context,
            )
