from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

from app import create_app
from config import ObservabilitySettings, Settings

ATTRIBUTES = {"category": "blazer", "color": "navy", "pattern": "solid", "sleeve": "long", "style": "formal"}
EMAIL_RESPONSE = {
    "intent_classification": "complaint",
    "intent_score": 0.91,
    "intent_reason": "negative sentiment",
    "vul_classification": "none",
    "vul_score": 0.0,
    "vul_reason": "no vulnerability markers",
}


def _remote(request: httpx.Request) -> httpx.Response:
    # Один обработчик на все удаленные сервисы, различаем по хосту.
    host, path = request.url.host, request.url.path
    if host == "email.test" and path == "/process-email":
        return httpx.Response(200, json=EMAIL_RESPONSE)
    if host == "lens.test" and path.startswith("/apps/"):
        return httpx.Response(200, json={})
    if host == "lens.test" and path == "/run":
        return httpx.Response(200, json=[{"actions": {"stateDelta": {"attributes": ATTRIBUTES}}}])
    if host == "kb.test" and path == "/query":
        return httpx.Response(200, json={"answer": "yes", "model": "groq"})
    if host == "kb.test" and path == "/upload":
        return httpx.Response(200, json={"file_id": "f-1", "filename": "a.pdf", "status": "ok"})
    if host == "kb.test" and path == "/reset_chat":
        return httpx.Response(500)
    return httpx.Response(404)


def _client(agent_settings, reporter, make_client) -> TestClient:
    http_client, _ = make_client(_remote)
    settings = Settings(agents=agent_settings, observability=ObservabilitySettings(service_name="test"))
    return TestClient(create_app(settings, http_client=http_client, reporter=reporter))


def test_email_route(agent_settings, reporter, make_client) -> None:
    client = _client(agent_settings, reporter, make_client)

    response = client.post("/agents/email/analyze", json={"email": "Hi, I am very unhappy with my order"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": EMAIL_RESPONSE, "error": None}


def test_image_route(agent_settings, reporter, make_client) -> None:
    client = _client(agent_settings, reporter, make_client)

    response = client.post(
        "/agents/image/attributes",
        files={"image": ("blazer.jpg", b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg")},
    )

    assert response.json()["data"] == ATTRIBUTES


def test_similar_products_failure_is_still_200(agent_settings, reporter, make_client) -> None:
    client = _client(agent_settings, reporter, make_client)

    response = client.post(
        "/agents/products/similar",
        files={"image": ("blazer.jpg", b"\xff\xd8", "image/jpeg")},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert "final_styled_response" in body["error"]
    assert reporter.events[0].app_name == "similar_prod_analyser"


def test_knowledge_routes(agent_settings, reporter, make_client) -> None:
    client = _client(agent_settings, reporter, make_client)

    query = client.get("/knowledge/query", params={"query": "q", "user_token": "user_1"})
    upload = client.post(
        "/knowledge/upload",
        files={"file": ("a.pdf", b"%PDF", "application/pdf")},
        data={"user_token": "user_1"},
    )
    reset = client.get("/knowledge/reset_chat", params={"user_token": "user_1"})
    token = client.post("/knowledge/user-token")

    assert query.json()["answer"] == "yes"
    assert upload.json()["file_id"] == "f-1"
    assert reset.status_code == 502
    assert reset.json()["detail"] == "Reset chat failed with status 500"
    assert token.json()["user_token"].startswith("user_")


def test_metrics_and_health(agent_settings, reporter, make_client) -> None:
    client = _client(agent_settings, reporter, make_client)
    client.post("/agents/email/analyze", json={"email": "x"})

    assert client.get("/health").json() == {"status": "ok"}
    assert "agent_email_analysis_calls" in client.get("/metrics").text


def test_importing_app_module_opens_no_clients() -> None:
    import app as app_module

    assert not hasattr(app_module, "app")
    assert callable(app_module.create_app)
