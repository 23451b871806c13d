"""JSON-over-HTTP transport shared by the HR and fleet adapters."""

from __future__ import annotations

import asyncio
import json
import logging
import ssl
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from driversync._redact import redact_for_log
from driversync.exceptions import ConfigurationError, ProtocolError, TransportError

_logger = logging.getLogger(__name__)

USER_AGENT = "driversync/1"


class Transport(Protocol):
    """Structural transport interface used by the adapters.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        form: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        ...


def build_client_ssl_context(cert_file: str, key_file: str) -> ssl.SSLContext:
    """Create a TLS context presenting the given client certificate.

    Raises :class:`ConfigurationError` if either file cannot be read or
    the key does not match the certificate.
    """
    context = ssl.create_default_context()
    try:
        context.load_cert_chain(certfile=cert_file, keyfile=key_file)
    except (OSError, ssl.SSLError) as exc:
        raise ConfigurationError(f"failed to load client certificate {cert_file!r} / key {key_file!r}: {exc}") from exc
    return context


class HttpTransport:
    """aiohttp-backed transport returning decoded JSON bodies.

    Non-2xx statuses and undecodable bodies raise :class:`ProtocolError`;
    connection failures and timeouts raise :class:`TransportError`.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 30.0,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._ssl = ssl_context

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        form: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        kwargs: dict[str, Any] = {
            "headers": request_headers,
            "params": dict(params) if params else None,
            "timeout": self._timeout,
        }
        if form is not None:
            kwargs["data"] = dict(form)
        elif json_body is not None:
            kwargs["json"] = json_body
        if self._ssl is not None:
            kwargs["ssl"] = self._ssl

        _logger.debug(
            "%s %s params=%s body=%s",
            method,
            url,
            params,
            redact_for_log(form if form is not None else json_body),
        )

        try:
            async with self._http.request(method, url, **kwargs) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise TransportError(f"{method} {url} failed: {exc}", endpoint=url) from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(f"{method} {url} timed out", endpoint=url) from exc

        _logger.debug("%s %s -> %d", method, url, status)

        if not 200 <= status < 300:
            raise ProtocolError(
                f"HTTP {status} from {url}: {text[:200]}",
                status_code=status,
                endpoint=url,
                body=text,
            )

        if not text.strip():
            return {}

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProtocolError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=status,
                endpoint=url,
                body=text,
            ) from exc
