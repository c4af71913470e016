"""Async registry HTTP client with bounded retries and error mapping."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from dephealth.exceptions import PackageNotFoundError, RegistryError

log = structlog.get_logger("dephealth.engine")

_MAX_ATTEMPTS = 2
_RETRY_BASE_DELAY = 0.5  # seconds


class RegistryClient:
    """Thin async wrapper around a package registry's JSON API.

    Every request carries an explicit timeout. Timeouts, transport errors
    and 5xx responses are retried at most ``_MAX_ATTEMPTS`` times in total;
    a 404 maps to :class:`PackageNotFoundError` (or ``None`` with
    ``allow_missing``) and anything else to :class:`RegistryError`.
    """

    def __init__(
        self,
        registry_name: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        self.registry_name = registry_name
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
        )
        self._timeout = timeout

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def get_json(
        self,
        url: str,
        *,
        package: str,
        timeout: float | None = None,
        allow_missing: bool = False,
    ) -> Any:
        """GET *url* and return its parsed JSON body.

        With *allow_missing*, a 404 returns ``None`` instead of raising
        :class:`PackageNotFoundError`.
        """
        resp = await self._request_with_retry("GET", url, package=package, timeout=timeout)
        if resp.status_code == 404:
            if allow_missing:
                return None
            raise PackageNotFoundError(package, self.registry_name)
        return self._decode(resp, package)

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        *,
        package: str,
        timeout: float | None = None,
    ) -> Any:
        """POST a JSON *payload* to *url* and return the parsed JSON body."""
        resp = await self._request_with_retry(
            "POST", url, package=package, timeout=timeout, json=payload
        )
        if resp.status_code == 404:
            raise PackageNotFoundError(package, self.registry_name)
        return self._decode(resp, package)

    # ── internal ───────────────────────────────────────────────────────────

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        *,
        package: str,
        timeout: float | None,
        **kwargs: Any,
    ) -> httpx.Response:
        last_exc: Exception | None = None
        effective_timeout = timeout if timeout is not None else self._timeout
        for attempt in range(_MAX_ATTEMPTS):
            try:
                resp = await self._client.request(
                    method, url, timeout=effective_timeout, **kwargs
                )
                if resp.status_code < 500:
                    return resp
                log.debug(
                    "registry.server_error",
                    registry=self.registry_name,
                    package=package,
                    status=resp.status_code,
                    attempt=attempt + 1,
                )
                last_exc = RegistryError(
                    f"{self.registry_name} returned HTTP {resp.status_code} for {package}"
                )
            except httpx.TimeoutException:
                log.debug(
                    "registry.timeout",
                    registry=self.registry_name,
                    package=package,
                    attempt=attempt + 1,
                )
                last_exc = RegistryError(
                    f"{self.registry_name} timed out after {effective_timeout}s for {package}"
                )
            except httpx.HTTPError as exc:
                last_exc = RegistryError(
                    f"{self.registry_name} request failed for {package}: {exc}"
                )

            if attempt < _MAX_ATTEMPTS - 1:
                await asyncio.sleep(_RETRY_BASE_DELAY * (2**attempt))

        raise last_exc  # type: ignore[misc]

    def _decode(self, resp: httpx.Response, package: str) -> Any:
        if resp.status_code >= 400:
            raise RegistryError(
                f"{self.registry_name} returned HTTP {resp.status_code} for {package}"
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise RegistryError(
                f"{self.registry_name} returned malformed JSON for {package}"
            ) from exc
