"""
Cloudflare Email Routing Client

Async client for the routing-rule endpoints:
- POST   /zones/{zone}/email/routing/rules         create a forwarding rule
- PATCH  /zones/{zone}/email/routing/rules/{id}    enable/disable a rule
- DELETE /zones/{zone}/email/routing/rules/{id}    delete a rule

Each call is a single request bounded by the configured timeout. Any
transport failure or `success: false` body is raised as ProviderError,
carrying Cloudflare's first error message when there is one.
"""

from typing import Any, Dict, Optional, Protocol

import httpx

from tempalias.config import Settings
from tempalias.core.exceptions import ProviderError
from tempalias.core.logging import get_logger
from tempalias.core.metrics import record_provider_request

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"
RULE_NAME_PREFIX = "TempMail-"


class RuleProvider(Protocol):
    """Operations the lifecycle manager needs from a mail-routing provider."""
    
    async def create_rule(self, address: str, enabled: bool = True) -> str: ...
    
    async def set_rule_enabled(self, rule_id: str, enabled: bool) -> None: ...
    
    async def delete_rule(self, rule_id: str) -> None: ...


class CloudflareRuleProvider:
    """
    Cloudflare implementation of RuleProvider.
    
    Every rule matches one literal `to` address and forwards to the
    configured destination mailbox.
    """
    
    def __init__(
        self,
        zone_id: str,
        api_token: str,
        destination_email: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.zone_id = zone_id
        self.api_token = api_token
        self.destination_email = destination_email
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudflareRuleProvider":
        return cls(
            zone_id=settings.CF_ZONE_ID,
            api_token=settings.CF_API_TOKEN,
            destination_email=settings.CF_DESTINATION_EMAIL,
            base_url=settings.CF_API_BASE_URL,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        )
    
    @property
    def rules_path(self) -> str:
        return f"/zones/{self.zone_id}/email/routing/rules"
    
    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client
    
    async def aclose(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
    
    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request and return the `result` object of a successful body.
        
        Raises:
            ProviderError: On transport failure, unparsable body or success=false
        """
        client = self._get_client()
        
        try:
            response = await client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            record_provider_request(operation, ok=False)
            raise ProviderError(f"Cloudflare request timed out: {e}") from e
        except httpx.HTTPError as e:
            record_provider_request(operation, ok=False)
            raise ProviderError(f"Cloudflare request failed: {e}") from e
        
        logger.debug("Cloudflare response", method=method, path=path, status_code=response.status_code)
        
        try:
            body = response.json()
        except ValueError:
            body = None
        
        if not isinstance(body, dict) or not body.get("success"):
            record_provider_request(operation, ok=False)
            raise ProviderError(
                _first_error_message(body),
                provider_status=response.status_code,
                detail=body if isinstance(body, dict) else None,
            )
        
        record_provider_request(operation, ok=True)
        result = body.get("result")
        return result if isinstance(result, dict) else {}
    
    async def create_rule(self, address: str, enabled: bool = True) -> str:
        """
        Create a forwarding rule for `address`.
        
        Returns:
            str: Cloudflare rule id
        """
        payload = {
            "matchers": [{"type": "literal", "field": "to", "value": address}],
            "actions": [{"type": "forward", "value": [self.destination_email]}],
            "enabled": enabled,
            "name": f"{RULE_NAME_PREFIX}{address}",
        }
        result = await self._request("create", "POST", self.rules_path, payload)
        
        rule_id = result.get("id")
        if not rule_id:
            raise ProviderError("Cloudflare did not return a rule id")
        
        logger.info("Created Cloudflare rule", rule_id=rule_id, address=address)
        return rule_id
    
    async def set_rule_enabled(self, rule_id: str, enabled: bool) -> None:
        """Enable or disable an existing rule."""
        await self._request(
            "update",
            "PATCH",
            f"{self.rules_path}/{rule_id}",
            {"enabled": enabled},
        )
        logger.info("Updated Cloudflare rule", rule_id=rule_id, enabled=enabled)
    
    async def delete_rule(self, rule_id: str) -> None:
        """Delete a rule. Callers treat failures as best-effort cleanup."""
        await self._request("delete", "DELETE", f"{self.rules_path}/{rule_id}")
        logger.info("Deleted Cloudflare rule", rule_id=rule_id)


def _first_error_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    errors = body.get("errors") or []
    if errors and isinstance(errors[0], dict):
        return errors[0].get("message") or None
    return None
