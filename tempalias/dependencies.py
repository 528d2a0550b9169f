"""
Dependency Injection

Builds the application components once at startup and exposes them to
FastAPI routes through `app.state`.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from tempalias.config import Settings
from tempalias.core.clock import Clock, utcnow
from tempalias.core.logging import get_logger
from tempalias.db.alias_store import AliasStore
from tempalias.db.session import Database
from tempalias.services.address_generator import AddressGenerator
from tempalias.services.alias_service import AliasLifecycleService
from tempalias.services.cloudflare import CloudflareRuleProvider, RuleProvider
from tempalias.workers.expiration_sweeper import ExpirationSweeper

logger = get_logger(__name__)


@dataclass
class Components:
    """Everything a running instance shares between requests and the sweeper."""
    
    settings: Settings
    database: Database
    store: AliasStore
    provider: RuleProvider
    lifecycle: AliasLifecycleService
    sweeper: ExpirationSweeper
    
    async def close(self):
        """Stop the sweeper and release the HTTP client and database."""
        await self.sweeper.stop()
        
        aclose = getattr(self.provider, "aclose", None)
        if aclose is not None:
            await aclose()
        
        await self.database.dispose()


def wire_components(
    settings: Settings,
    database: Database,
    provider: RuleProvider,
    address_generator: Optional[AddressGenerator] = None,
    clock: Clock = utcnow,
) -> Components:
    """
    Assemble components around an opened database and a provider.
    
    Args:
        settings: Application settings
        database: Database with tables created
        provider: Rule provider client
        address_generator: Replacement generator (default: from settings)
        clock: Time source for expiry computations
    
    Returns:
        Components: Wired components (sweeper not started)
    """
    store = AliasStore(database)
    address_generator = address_generator or AddressGenerator(
        domain=settings.CF_EMAIL_DOMAIN,
        length=settings.ALIAS_LENGTH,
    )
    
    lifecycle = AliasLifecycleService(
        store,
        provider,
        address_generator,
        ttl=settings.alias_ttl,
        clock=clock,
    )
    sweeper = ExpirationSweeper(
        store,
        lifecycle,
        interval=settings.SWEEP_INTERVAL_SECONDS,
        clock=clock,
    )
    
    return Components(
        settings=settings,
        database=database,
        store=store,
        provider=provider,
        lifecycle=lifecycle,
        sweeper=sweeper,
    )


async def build_components(settings: Settings) -> Components:
    """
    Open the database and build production components.
    
    Raises:
        Exception: Any schema creation failure (fatal at startup)
    """
    database = Database.from_settings(settings)
    try:
        await database.create_tables()
    except Exception:
        await database.dispose()
        raise
    
    if not settings.provider_configured:
        logger.warning("Cloudflare settings incomplete; alias operations will fail")
    
    provider = CloudflareRuleProvider.from_settings(settings)
    return wire_components(settings, database, provider)


# ===================================
# Route Dependencies
# ===================================

def get_components(request: Request) -> Components:
    """
    Get the components attached by the lifespan.
    
    Returns:
        Components: Shared components
    """
    return request.app.state.components


def get_alias_service(components: Components = Depends(get_components)) -> AliasLifecycleService:
    """
    Get alias lifecycle service instance.
    
    Returns:
        AliasLifecycleService: Lifecycle service
    """
    return components.lifecycle