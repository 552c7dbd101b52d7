"""
Backend Authenticator Client
============================

Calls the backend login endpoint and maps its failures onto the
session manager's exception taxonomy.
"""

from typing import Any, Dict, Optional, Protocol

import httpx
from httpx import TimeoutException, TransportError

from multiauth.core.config import Settings
from multiauth.core.exceptions import (
    ForbiddenError,
    InvalidCredentialsError,
    LoginFailedError,
    MalformedResponseError,
    MultiAuthException,
    NetworkError,
    RateLimitedError,
    ServerError,
)
from multiauth.core.logging import get_logger

logger = get_logger(__name__)


class Authenticator(Protocol):
    """External login collaborator consumed by the session manager."""

    async def login(
        self,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        ...


class HttpAuthenticator:
    """
    Authenticator backed by ``POST {api_base_url}{login_endpoint}``.

    Usage:
        authenticator = HttpAuthenticator.from_settings(get_settings())
        body = await authenticator.login("a@b.com", "secret", role="TRADER")
    """

    def __init__(
        self,
        base_url: str,
        login_endpoint: str = "/auth/login",
        timeout: float = 10.0,
        default_retry_after: int = 15,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.login_endpoint = login_endpoint
        self.timeout = timeout
        self.default_retry_after = default_retry_after
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "HttpAuthenticator":
        return cls(
            base_url=settings.api_base_url,
            login_endpoint=settings.login_endpoint,
            timeout=settings.request_timeout,
            default_retry_after=settings.default_retry_after,
            transport=transport,
        )

    async def login(
        self,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Submit credentials to the backend.

        Args:
            email: Account email
            password: Account password
            role: Optional backend role hint, e.g. ``"TRADER"``

        Returns:
            Decoded JSON body of a successful response

        Raises:
            MultiAuthException: A subclass matching the failure
        """
        body: Dict[str, Any] = {"email": email, "password": password}
        if role:
            body["role"] = role

        logger.info(
            "auth_request",
            endpoint=f"{self.base_url}{self.login_endpoint}",
            role=role,
        )

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(self.login_endpoint, json=body)

        except TimeoutException as e:
            logger.warning("auth_timeout", error=str(e))
            raise NetworkError(reason="Request timed out") from e

        except TransportError as e:
            logger.error("auth_transport_error", error=str(e), error_type=type(e).__name__)
            raise NetworkError(reason=str(e) or type(e).__name__) from e

        if response.is_success:
            try:
                payload = response.json()
            except ValueError as e:
                raise MalformedResponseError(missing=["body"]) from e
            if not isinstance(payload, dict):
                raise MalformedResponseError(missing=["body"])
            return payload

        error = self._error_for(response)
        logger.warning(
            "auth_rejected",
            status_code=response.status_code,
            kind=error.kind,
        )
        raise error

    def _error_for(self, response: httpx.Response) -> MultiAuthException:
        message = _backend_message(response)
        status_code = response.status_code

        if status_code == 401:
            return InvalidCredentialsError(message)
        if status_code == 403:
            return ForbiddenError(message)
        if status_code == 429:
            return RateLimitedError(
                retry_after=_parse_retry_after(
                    response.headers.get("retry-after"),
                    self.default_retry_after,
                )
            )
        if status_code >= 500:
            return ServerError(upstream_status=status_code)
        return LoginFailedError(
            message=message or "Login failed. Please try again.",
            details={"upstream_status": status_code},
        )


def _backend_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return None


def _parse_retry_after(value: Optional[str], default: int) -> int:
    if value and value.strip().isdigit():
        return int(value.strip())
    return default
