import logging
from dataclasses import replace
from typing import Any, Optional

import httpx

from bcm_bridge.client import HttpClient
from bcm_bridge.formatters import courses_to_text, enrollments_to_text, faqs_to_text
from bcm_bridge.utils import Config, Failure, Outcome, Success

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "X-Admin-Key"

# Domain-level messages replace the transport's error text.
COURSES_UNAVAILABLE = "Live system is unreachable. Please try again later."
FAQS_UNAVAILABLE = "FAQs are not available right now."
ENROLLMENTS_UNAVAILABLE = "Unable to retrieve recent enrollments."
ENROLL_FAILED = "Unable to create enrollment. Please try again."
CHAT_UNAVAILABLE = "Chat service is unavailable."

# End-user sentences for the text-mode operations.
COURSES_SORRY = "Sorry, my live system is unreachable. Please try again later."
FAQS_SORRY = "Sorry, FAQs are not available right now."
ENROLLMENTS_SORRY = "Sorry, I can’t retrieve recent enrollments right now."


def _substitute(outcome: Outcome, message: str, operation: str) -> Outcome:
    if outcome.ok:
        return outcome
    logger.debug("%s failed: %s", operation, outcome.error)
    return replace(outcome, error=message)


class BridgeClient:
    """Backend bridge bound to one configured endpoint.

    Structured operations return an ``Outcome``; the ``*_text`` variants
    return display text and never fail.
    """

    def __init__(self, cfg: Optional[Config] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg or Config()
        self.http = HttpClient(self.cfg, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.http.aclose()

    # ========== Config ==========
    def set_api_base(self, url: Optional[str]):
        self.cfg.base_url = str(url or self.cfg.base_url)

    def get_api_base(self) -> str:
        return self.cfg.base_url

    def set_admin_key(self, key: Optional[str]):
        self.cfg.admin_key = key or None

    def get_admin_key(self) -> Optional[str]:
        return self.cfg.admin_key

    # ========== Structured ==========
    async def fetch_courses(self) -> Outcome:
        res = await self.http.get("/courses/summary/all")
        return _substitute(res, COURSES_UNAVAILABLE, "fetch_courses")

    async def fetch_faqs(self) -> Outcome:
        res = await self.http.get("/faqs")
        return _substitute(res, FAQS_UNAVAILABLE, "fetch_faqs")

    async def fetch_recent_enrollments(self, limit: Optional[int] = 10, source: Optional[str] = None) -> Outcome:
        # Admin-only endpoint; the key header goes out only when one is configured.
        headers = {}
        if self.cfg.admin_key:
            headers[ADMIN_KEY_HEADER] = self.cfg.admin_key

        params = {}
        if limit:
            params["limit"] = str(limit)
        if source:
            params["source"] = str(source)
        query = str(httpx.QueryParams(params))

        path = "/enrollments/recent" + (f"?{query}" if query else "")
        res = await self.http.get(path, headers=headers)
        return _substitute(res, ENROLLMENTS_UNAVAILABLE, "fetch_recent_enrollments")

    async def create_enrollment(self, payload: Any) -> Outcome:
        # payload: {full_name, email, phone, course_id, source}
        res = await self.http.post("/enroll", payload)
        return _substitute(res, ENROLL_FAILED, "create_enrollment")

    async def ping_health(self) -> Outcome:
        return await self.http.get("/health")

    # ========== Readable text ==========
    async def fetch_courses_text(self) -> str:
        r = await self.fetch_courses()
        if not r.ok:
            return COURSES_SORRY
        return courses_to_text(r.data)

    async def fetch_faqs_text(self) -> str:
        r = await self.fetch_faqs()
        if not r.ok:
            return FAQS_SORRY
        return faqs_to_text(r.data)

    async def fetch_recent_enrollments_text(self, limit: Optional[int] = 10, source: Optional[str] = None) -> str:
        r = await self.fetch_recent_enrollments(limit, source)
        if not r.ok:
            return ENROLLMENTS_SORRY
        return enrollments_to_text(r.data)

    # ========== Fallback router ==========
    async def ask_backend(self, utterance: Any) -> Outcome:
        """Route an utterance by keyword; first match wins, /chat catches the rest."""
        u = str(utterance or "").lower()
        if "course" in u:
            return Success(await self.fetch_courses_text())
        if "faq" in u:
            return Success(await self.fetch_faqs_text())
        res = await self.http.post("/chat", {"message": utterance})
        if not res.ok:
            logger.debug("chat failed: %s", res.error)
            return Failure(CHAT_UNAVAILABLE)
        return res
