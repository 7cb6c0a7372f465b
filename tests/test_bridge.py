import asyncio
import json

import httpx

from bcm_bridge import bridge as bridge_mod
from bcm_bridge.bridge import BridgeClient
from bcm_bridge.utils import Config, Failure, Success

COURSES = {"courses": [{"summary": "Intro to Python"}, {"summary": "Data Science 101"}]}
FAQS = [{"question": "Is it online?", "answer": "Yes"}]


def run(backend, call, **cfg):
    async def scenario():
        config = Config(base_url="http://api.test", **cfg)
        async with BridgeClient(config, transport=backend.transport) as bcm:
            return await call(bcm)

    return asyncio.run(scenario())


# ========== Config surface ==========
def test_config_setters():
    bcm = BridgeClient(Config(base_url="http://a.test"))
    bcm.set_api_base("http://b.test")
    assert bcm.get_api_base() == "http://b.test"
    bcm.set_api_base("")
    assert bcm.get_api_base() == "http://b.test"
    bcm.set_admin_key("secret")
    assert bcm.get_admin_key() == "secret"
    bcm.set_admin_key("")
    assert bcm.get_admin_key() is None
    asyncio.run(bcm.aclose())


def test_default_config():
    bcm = BridgeClient()
    assert bcm.get_api_base() == "https://bcm-demo.onrender.com"
    assert bcm.get_admin_key() is None
    asyncio.run(bcm.aclose())


def test_base_url_change_only_affects_later_calls():
    hosts = []

    async def scenario():
        gate = asyncio.Event()

        async def handler(request):
            hosts.append(request.url.host)
            if request.url.host == "old.test":
                await gate.wait()
            return httpx.Response(200, json={"host": request.url.host})

        async with BridgeClient(Config(base_url="http://old.test"), transport=httpx.MockTransport(handler)) as bcm:
            first = asyncio.ensure_future(bcm.ping_health())
            await asyncio.sleep(0)
            bcm.set_api_base("http://new.test")
            second = await bcm.ping_health()
            gate.set()
            return await first, second

    first, second = asyncio.run(scenario())
    assert first == Success({"host": "old.test"})
    assert second == Success({"host": "new.test"})
    assert sorted(hosts) == ["new.test", "old.test"]


# ========== Structured ==========
def test_fetch_courses(backend):
    backend.routes[("GET", "/courses/summary/all")] = (200, {"json": COURSES})
    assert run(backend, lambda b: b.fetch_courses()) == Success(COURSES)


def test_fetch_courses_failure_message(backend):
    backend.routes[("GET", "/courses/summary/all")] = (500, {"json": {"detail": "boom"}})
    res = run(backend, lambda b: b.fetch_courses())
    assert res == Failure(bridge_mod.COURSES_UNAVAILABLE, status_code=500, body_discarded=True)


def test_fetch_faqs_failure_message(backend):
    res = run(backend, lambda b: b.fetch_faqs())
    assert res.error == "FAQs are not available right now."
    assert res.status_code == 404


def test_recent_enrollments_query_and_no_admin_header(backend):
    backend.routes[("GET", "/enrollments/recent")] = (200, {"json": []})
    run(backend, lambda b: b.fetch_recent_enrollments())
    req = backend.requests[0]
    assert req.url.raw_path == b"/enrollments/recent?limit=10"
    assert "x-admin-key" not in req.headers


def test_recent_enrollments_with_source_and_admin_key(backend):
    backend.routes[("GET", "/enrollments/recent")] = (200, {"json": []})
    run(backend, lambda b: b.fetch_recent_enrollments(5, "web"), admin_key="k3y")
    req = backend.requests[0]
    assert req.url.raw_path == b"/enrollments/recent?limit=5&source=web"
    assert req.headers["x-admin-key"] == "k3y"


def test_recent_enrollments_without_query(backend):
    backend.routes[("GET", "/enrollments/recent")] = (200, {"json": []})
    run(backend, lambda b: b.fetch_recent_enrollments(0, None))
    assert backend.requests[0].url.raw_path == b"/enrollments/recent"


def test_recent_enrollments_failure(backend):
    backend.routes[("GET", "/enrollments/recent")] = (401, {"json": {"detail": "bad key"}})
    res = run(backend, lambda b: b.fetch_recent_enrollments())
    assert res.error == "Unable to retrieve recent enrollments."


def test_create_enrollment_passes_payload_through(backend):
    payload = {"full_name": "Ann Lee", "email": "ann@example.com", "course_id": 7, "source": "avatar"}
    backend.routes[("POST", "/enroll")] = (201, {"json": {"id": 1}})
    assert run(backend, lambda b: b.create_enrollment(payload)) == Success({"id": 1})
    assert json.loads(backend.requests[0].content) == payload


def test_create_enrollment_failure(backend):
    res = run(backend, lambda b: b.create_enrollment({}))
    assert res.error == "Unable to create enrollment. Please try again."


def test_ping_health_keeps_transport_error(backend):
    res = run(backend, lambda b: b.ping_health())
    assert res == Failure("GET /health -> 404 Not Found", status_code=404, body_discarded=True)


# ========== Readable text ==========
def test_courses_text(backend):
    backend.routes[("GET", "/courses/summary/all")] = (200, {"json": COURSES})
    assert run(backend, lambda b: b.fetch_courses_text()) == "Intro to Python\nData Science 101"


def test_text_operations_collapse_failures(backend):
    assert run(backend, lambda b: b.fetch_courses_text()) == bridge_mod.COURSES_SORRY
    assert run(backend, lambda b: b.fetch_faqs_text()) == "Sorry, FAQs are not available right now."
    assert run(backend, lambda b: b.fetch_recent_enrollments_text()) == (
        "Sorry, I can’t retrieve recent enrollments right now."
    )


def test_enrollments_text(backend):
    rows = [{"full_name": "Bo Chen", "created_at": "2024-05-02"}]
    backend.routes[("GET", "/enrollments/recent")] = (200, {"json": rows})
    assert run(backend, lambda b: b.fetch_recent_enrollments_text(3)) == "Bo Chen enrolled in a course on 2024-05-02"


# ========== Fallback router ==========
def test_router_course_wins_over_faq(backend):
    backend.routes[("GET", "/courses/summary/all")] = (200, {"json": COURSES})
    res = run(backend, lambda b: b.ask_backend("Any FAQ about your COURSES?"))
    assert res == Success("Intro to Python\nData Science 101")
    assert backend.paths == ["/courses/summary/all"]


def test_router_faq(backend):
    backend.routes[("GET", "/faqs")] = (200, {"json": FAQS})
    res = run(backend, lambda b: b.ask_backend("show me the faqs"))
    assert res == Success("Is it online?: Yes")
    assert backend.paths == ["/faqs"]


def test_router_keyword_failure_still_succeeds_with_sorry_text(backend):
    res = run(backend, lambda b: b.ask_backend("course list"))
    assert res == Success(bridge_mod.COURSES_SORRY)


def test_router_falls_back_to_chat(backend):
    backend.routes[("POST", "/chat")] = (200, {"json": {"reply": "Hello!"}})
    res = run(backend, lambda b: b.ask_backend("Hi there"))
    assert res == Success({"reply": "Hello!"})
    assert backend.paths == ["/chat"]
    assert json.loads(backend.requests[0].content) == {"message": "Hi there"}


def test_router_chat_unavailable(backend):
    backend.routes[("POST", "/chat")] = (502, {"text": "bad gateway"})
    res = run(backend, lambda b: b.ask_backend("Hi there"))
    assert res == Failure("Chat service is unavailable.")


def test_router_handles_empty_utterance(backend):
    backend.routes[("POST", "/chat")] = (200, {"json": {"reply": "?"}})
    run(backend, lambda b: b.ask_backend(None))
    assert json.loads(backend.requests[0].content) == {"message": None}
