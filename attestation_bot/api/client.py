"""
Attestation API client - async version using aiohttp.
"""
import aiohttp
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

class AttestationAPI:
    """Async API client for the attestation service"""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        email: str = "",
        password: str = "",
        timeout: int = 15
    ):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.token = token
        self.static_token = bool(token)
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        self.session: Optional[aiohttp.ClientSession] = None

        self.login_url = f"{self.base_url}/api/auth/login"
        self.attestation_url = f"{self.base_url}/api/attestation"

        logger.debug(f"  Login URL: {self.login_url}")
        logger.debug(f"  Attestation URL: {self.attestation_url}")

    async def __aenter__(self):
        """Context manager entry"""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        await self.close()

    async def _ensure_session(self):
        """Ensure session exists"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def login(self) -> bool:
        """Login with service credentials and store the bearer token"""
        if self.token:
            return True

        if not (self.email and self.password):
            logger.error("API credentials not configured")
            return False

        await self._ensure_session()

        payload = {
            "email": self.email,
            "password": self.password
        }

        try:
            async with self.session.post(self.login_url, json=payload) as response:
                if response.status == 200:
                    data = await response.json()
                    token = data.get("token")
                    if token:
                        self.token = token
                        return True
                    logger.error(f"Login failed: {data.get('error', 'No token in response')}")
                    return False
                else:
                    logger.error(f"Login request failed with status {response.status}")
                    text = await response.text()
                    logger.error(f"Response: {text[:200]}")
                    return False

        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Login exception: {e}")
            return False

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        retry_auth: bool = True
    ) -> Optional[Dict[str, Any]]:
        """
        Send an authenticated request to the attestation API.

        A 401 on a login-issued token logs in again and retries once.

        Returns:
            Decoded JSON body on 2xx, None on any failure
        """
        if not await self.login():
            return None

        await self._ensure_session()
        url = f"{self.attestation_url}{path}"

        try:
            async with self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers()
            ) as response:
                logger.debug(f"{method} {url} -> {response.status}")

                expired = response.status == 401 and retry_auth and not self.static_token

                if expired:
                    logger.warning("API token rejected, logging in again")
                    self.token = ""
                elif 200 <= response.status < 300:
                    data = await response.json()
                    if isinstance(data, dict):
                        return data
                    logger.warning(f"Unexpected response body from {url}")
                    return None
                else:
                    text = await response.text()
                    logger.error(f"{method} {url} failed with status {response.status}: {text[:200]}")
                    return None

        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            logger.error(f"{method} {url} exception: {e}")
            return None

        return await self._request(method, path, payload, retry_auth=False)

    async def campaigns(self) -> List[Dict]:
        """Get all campaigns visible to the service account"""
        data = await self._request("GET", "/campaigns")
        if data is None:
            return []
        campaigns = data.get("campaigns")
        return campaigns if isinstance(campaigns, list) else []

    async def dashboard(self, campaign_id: str) -> Optional[Dict]:
        """Get campaign and per-participant records; None if the fetch failed"""
        data = await self._request("GET", f"/campaigns/{campaign_id}/dashboard")
        if data is None:
            return None
        if not isinstance(data.get("records"), list):
            logger.warning(f"Dashboard response for campaign {campaign_id} has no records list")
            return None
        return data

    async def pending_invites(self, campaign_id: str) -> List[Dict]:
        """Get unregistered invites for a campaign"""
        data = await self._request("GET", f"/campaigns/{campaign_id}/pending-invites")
        if data is None:
            return []
        invites = data.get("pending_invites")
        return invites if isinstance(invites, list) else []

    async def send_reminder(self, record_id: str) -> bool:
        data = await self._request("POST", f"/records/{record_id}/remind")
        return data is not None

    async def bulk_remind(self, campaign_id: str, record_ids: List[str]) -> Optional[Dict[str, int]]:
        """Send reminders in one request; returns {'sent', 'failed'} or None"""
        data = await self._request(
            "POST",
            f"/campaigns/{campaign_id}/bulk-remind",
            {"record_ids": list(record_ids)}
        )
        if data is None:
            return None
        return {
            "sent": int(data.get("sent", 0) or 0),
            "failed": int(data.get("failed", 0) or 0)
        }

    async def resend_invite(self, invite_id: str) -> bool:
        data = await self._request("POST", f"/pending-invites/{invite_id}/resend")
        return data is not None

    async def resend_invites(self, campaign_id: str, invite_ids: List[str]) -> Optional[int]:
        """Resend registration invites in one request; returns emails sent or None"""
        data = await self._request(
            "POST",
            f"/campaigns/{campaign_id}/resend-invites",
            {"inviteIds": list(invite_ids)}
        )
        if data is None:
            return None
        return int(data.get("emailsSent", 0) or 0)

    async def escalate(self, record_id: str, custom_message: Optional[str] = None) -> bool:
        payload = {"custom_message": custom_message} if custom_message else {}
        data = await self._request("POST", f"/records/{record_id}/escalate", payload)
        return data is not None

    async def close(self):
        """Close the session"""
        if self.session and not self.session.closed:
            await self.session.close()
