"""
Vercel domains API client.

Thin adapter: every call maps 1:1 onto a Vercel endpoint. Retries and
interpretation (fatal vs. best effort) live in the lifecycle orchestrator.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.schemas.domain import DomainVerificationData, VerificationToken
from app.services.domain_errors import RegistrarError, RegistrarUnavailableError

logger = logging.getLogger("guestbook.registrar")

ALREADY_EXISTS = "domain_already_exists"


class VercelDomainsClient:
    def __init__(
        self,
        token: str,
        project_id: str,
        team_id: Optional[str] = None,
        base_url: str = "https://api.vercel.com",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        self.project_id = project_id
        self.team_id = team_id if team_id and team_id != "#" else None
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "VercelDomainsClient":
        return cls(
            token=settings.VERCEL_TOKEN,
            project_id=settings.VERCEL_PROJECT_ID,
            team_id=settings.VERCEL_TEAM_ID,
            base_url=settings.VERCEL_API_URL,
            timeout=settings.REGISTRAR_TIMEOUT_SECONDS,
        )

    # ── Operations ──

    def add_host(self, hostname: str, is_apex: bool) -> DomainVerificationData:
        """Attach ``hostname`` to the project; apex domains also get a www → apex redirect."""
        path = f"/v10/projects/{self.project_id}/domains"
        response, data = self._request("POST", path, json={"name": hostname})

        if response.is_error and _error_code(data) != ALREADY_EXISTS:
            raise RegistrarError(_error_message(data, "Failed to add domain to Vercel"))

        if is_apex:
            www, www_data = self._request(
                "POST",
                path,
                json={"name": f"www.{hostname}", "redirect": hostname, "redirectStatusCode": 308},
            )
            if www.is_error and _error_code(www_data) != ALREADY_EXISTS:
                logger.warning(
                    "Could not add www redirect for %s: %s",
                    hostname, _error_message(www_data, www.status_code),
                )

        tokens = [VerificationToken.model_validate(v) for v in (data.get("verification") or [])]
        logger.info("Vercel accepted domain %s (apex=%s, %d challenges)", hostname, is_apex, len(tokens))
        return DomainVerificationData(is_apex=is_apex, verification=tokens)

    def remove_host(self, hostname: str, is_apex: bool) -> None:
        """Detach ``hostname``; for apex the www redirect goes first (Vercel blocks the reverse)."""
        base = f"/v9/projects/{self.project_id}/domains"
        if is_apex:
            self._request("DELETE", f"{base}/www.{hostname}")

        response, data = self._request("DELETE", f"{base}/{hostname}")
        if response.is_error:
            raise RegistrarError(_error_message(data, "Failed to remove domain"))

    def get_host_config(self, hostname: str) -> Dict[str, Any]:
        """DNS configuration as Vercel sees it (``misconfigured`` etc.)."""
        response, data = self._request("GET", f"/v6/domains/{hostname}/config")
        if response.is_error:
            raise RegistrarError(_error_message(data, "Failed to read domain configuration"))
        return data

    def verify_host(self, hostname: str) -> Dict[str, Any]:
        """
        Ask Vercel to re-check the ownership challenge.

        A pending challenge comes back as a 4xx with an error body; that is a
        normal answer (``verified`` stays falsy), only 5xx is a failure.
        """
        response, data = self._request(
            "POST", f"/v9/projects/{self.project_id}/domains/{hostname}/verify"
        )
        if response.is_server_error:
            raise RegistrarError(_error_message(data, "Failed to verify domain"))
        return data

    # ── HTTP ──

    def _request(self, method: str, path: str, json: Optional[dict] = None):
        params = {"teamId": self.team_id} if self.team_id else None
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = client.request(method, path, params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise RegistrarUnavailableError("Vercel API timed out") from e
        except httpx.HTTPError as e:
            raise RegistrarUnavailableError(f"Vercel API unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if response.is_error:
            logger.info("Vercel %s %s → %d %s", method, path, response.status_code, _error_code(data))
        return response, data


def _error_code(data: Dict[str, Any]) -> Optional[str]:
    error = data.get("error")
    return error.get("code") if isinstance(error, dict) else None


def _error_message(data: Dict[str, Any], default: Any) -> str:
    error = data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return str(default)
