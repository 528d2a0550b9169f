"""
Services Module

Business logic layer for the application.
"""

from tempalias.services.address_generator import AddressGenerator
from tempalias.services.alias_service import AliasLifecycleService
from tempalias.services.cloudflare import CloudflareRuleProvider, RuleProvider

__all__ = [
    "AddressGenerator",
    "AliasLifecycleService",
    "CloudflareRuleProvider",
    "RuleProvider",
]
