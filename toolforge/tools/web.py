"""
HTTP request execution strategy.

Sends an outbound request built from a URL template using the
`requests` library. Placeholder values are validated and percent-encoded
before they reach the URL, only http(s) URLs are allowed, and the whole
call is bounded by a single deadline armed when the call starts.
Arguments not consumed by the URL travel as query parameters (GET) or
as a JSON body (POST/PUT).
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Dict, Optional, Tuple

import requests
import structlog

from toolforge.tools.base import HttpHandlerConfig, ToolContext, ToolHandler, ToolResult, text_result
from toolforge.tools.interpolation import InterpolationError, interpolate, placeholders, stringify

logger = structlog.get_logger(__name__)

ALLOWED_SCHEMES = ("http://", "https://")


class DeadlineExceeded(requests.Timeout):
    """The response body was still streaming when the deadline fired."""


class HttpHandler(ToolHandler):
    """
    Call an HTTP endpoint described by a plugin definition.

    The blocking request runs in a worker thread; the awaiting coroutine
    gives up at the same deadline even if the thread is still unwinding.
    """

    def __init__(self, config: HttpHandlerConfig) -> None:
        self.config = config
        self.method = config.method.upper()
        self.timeout = config.timeout_ms / 1000.0
        self.url_params = placeholders(config.url)

    def _remaining_args(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in args.items() if k not in self.url_params}

    def _send(
        self,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, str]],
        body: Optional[str],
        deadline: float,
    ) -> Tuple[int, str, str]:
        with requests.request(
            self.method,
            url,
            params=params,
            headers=headers,
            data=body,
            timeout=self.timeout,
            stream=True,
        ) as resp:
            chunks = []
            for chunk in resp.iter_content(chunk_size=8192):
                chunks.append(chunk)
                if time.monotonic() > deadline:
                    raise DeadlineExceeded("response body exceeded deadline")
            raw = b"".join(chunks)
            try:
                text = raw.decode(resp.encoding or "utf-8", errors="replace")
            except LookupError:
                text = raw.decode("utf-8", errors="replace")
            return resp.status_code, resp.reason or "", text

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        try:
            url = interpolate(self.config.url, args, encode=True)
        except InterpolationError as exc:
            return text_result(f"HTTP handler error: {exc}", True)

        if not url.startswith(ALLOWED_SCHEMES):
            return text_result("Invalid URL scheme: only http:// and https:// are allowed", True)

        headers: Dict[str, str] = dict(self.config.headers)
        params: Optional[Dict[str, str]] = None
        body: Optional[str] = None
        remaining = self._remaining_args(args)
        if self.method == "GET":
            params = {k: stringify(v) for k, v in remaining.items()}
        elif remaining:
            headers["Content-Type"] = "application/json"
            body = json.dumps(remaining)

        deadline = time.monotonic() + self.timeout
        try:
            status, reason, text = await asyncio.wait_for(
                asyncio.to_thread(self._send, url, headers, params, body, deadline),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, requests.Timeout):
            logger.warning(
                "http_timeout",
                method=self.method,
                timeout_ms=self.config.timeout_ms,
                tool_use_id=context.tool_use_id,
            )
            return text_result(f"Request timed out after {self.config.timeout_ms}ms", True)
        except requests.RequestException as exc:
            return text_result(f"Request failed: {exc}", True)
        except Exception as exc:  # noqa: BLE001
            return text_result(f"HTTP handler error: {exc}", True)

        if not 200 <= status < 300:
            return text_result(f"HTTP {status} {reason}:\n{text}", True)
        return text_result(text)
