"""
Resend audience client for marketing email contacts.

Calls never raise on provider failures; they return an ``AudienceResult``
so the consent flow can report the provider side independently of the
database write.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class AudienceResult:
    success: bool
    error: Optional[str] = None


class ResendAudienceClient:
    """Adds and removes contacts in one Resend audience."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        audience_id: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.audience_id = audience_id if audience_id is not None else settings.resend_audience_id
        self.api_base = (api_base or settings.resend_api_base).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def configuration_error(self) -> Optional[str]:
        """Client-facing reason the client cannot be used, or None."""
        if not self.api_key:
            return "Resend API key not configured"
        if not self.audience_id:
            return "Resend Audience ID not configured"
        return None

    @property
    def _contacts_url(self) -> str:
        return f"{self.api_base}/audiences/{self.audience_id}/contacts"

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def add_contact(self, email: str, first_name: Optional[str] = None, last_name: Optional[str] = None) -> AudienceResult:
        payload = {
            "email": email,
            "first_name": first_name or email.split("@")[0],
            "last_name": last_name or "",
            "unsubscribed": False,
        }
        return await self._request("POST", self._contacts_url, json=payload)

    async def remove_contact(self, email: str) -> AudienceResult:
        url = f"{self._contacts_url}/{quote(email, safe='')}"
        return await self._request("DELETE", url)

    async def _request(self, method: str, url: str, json: Optional[dict] = None) -> AudienceResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.request(method, url, headers=self._headers, json=json)
        except httpx.HTTPError as exc:
            logger.warning(f"Resend request failed: {exc}", extra={"event": "audience_request_failed"})
            return AudienceResult(success=False, error=f"Failed to connect to Resend API: {exc}")

        if resp.status_code >= 400:
            detail = resp.text
            try:
                data = resp.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and data.get("message"):
                detail = data["message"]
            logger.warning(
                f"Resend API error {resp.status_code}: {detail}",
                extra={"event": "audience_request_failed", "status": resp.status_code}
            )
            return AudienceResult(success=False, error=f"Resend API error: {resp.status_code} - {detail}")

        return AudienceResult(success=True)
