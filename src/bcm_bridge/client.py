import asyncio
import json
import logging
from typing import Any, Mapping, Optional

import httpx

from bcm_bridge.cancel import CancelSignal, compose_timeout
from bcm_bridge.utils import Config, Failure, Outcome, Success

logger = logging.getLogger(__name__)

_NO_BODY = object()


# ========== HTTP transport ==========
class HttpClient:
    """Thin async transport over httpx.

    Every call resolves to an ``Outcome``; network errors, deadlines, aborts,
    bad JSON and non-2xx statuses all come back as ``Failure`` values.
    """

    def __init__(self, cfg: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg
        # Deadlines are enforced by compose_timeout, not by httpx.
        self._http = httpx.AsyncClient(verify=cfg.verify_tls, timeout=None, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def get(
        self,
        path: str,
        timeout_ms: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: Optional[CancelSignal] = None,
    ) -> Outcome:
        return await self._request("GET", path, _NO_BODY, timeout_ms, headers, signal)

    async def post(
        self,
        path: str,
        body: Any = None,
        timeout_ms: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: Optional[CancelSignal] = None,
    ) -> Outcome:
        return await self._request("POST", path, body, timeout_ms, headers, signal)

    # ========== Internal helpers ==========
    async def _request(self, method, path, body, timeout_ms, headers, signal) -> Outcome:
        # Resolved before the first await: a later set_api_base() only affects later calls.
        url = f"{self.cfg.base_url}{path}"
        handle = compose_timeout(self.cfg.timeout_ms if timeout_ms is None else timeout_ms, signal)
        task: Optional[asyncio.Future] = None

        def on_abort(_reason):
            if task is not None and not task.done():
                task.cancel()

        try:
            handle.signal.raise_if_fired()

            merged = httpx.Headers({"Accept": "application/json"})
            content = None
            if body is not _NO_BODY:
                merged["Content-Type"] = "application/json"
                content = json.dumps(body or {})
            merged.update(headers or {})

            logger.debug("%s %s", method, url)
            task = asyncio.ensure_future(
                self._http.request(method, url, headers=merged, content=content)
            )
            handle.signal.add_listener(on_abort)
            try:
                response = await task
            except asyncio.CancelledError:
                if handle.signal.fired:
                    raise handle.signal.reason
                raise

            data = self._decode(response)
            if not response.is_success:
                logger.debug("%s %s -> %s, body dropped", method, url, response.status_code)
                return Failure(
                    f"{method} {path} -> {response.status_code} {response.reason_phrase}",
                    status_code=response.status_code,
                    body_discarded=bool(response.content),
                )
            logger.debug("%s %s -> %s", method, url, response.status_code)
            return Success(data)
        except Exception as e:
            logger.debug("%s %s failed: %r", method, url, e)
            return Failure(str(e) or type(e).__name__)
        finally:
            handle.signal.remove_listener(on_abort)
            handle.release()

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            return response.json()
        return response.text
