from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from modelflow import server
from modelflow.db import Base, get_db
from modelflow.db_models import LlmAudit
from modelflow.services import ai_service
from modelflow.tools import export


test_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    server.app.dependency_overrides[get_db] = override_get_db
    yield
    server.app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(server.app)


def _fake_openai(monkeypatch, content):
    def create(**kwargs):
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=None)

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    monkeypatch.setattr(ai_service, "get_openai_client", lambda: client)


def _create(client, mode="er"):
    response = client.post("/api/workspaces", json={"mode": mode})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_catalog_endpoint(client):
    data = client.get("/api/catalog/er").json()
    assert data["kind"] == "ER"
    assert data["categories"][0]["label"] == "Entity Tools"
    assert [example["label"] for example in data["examples"]][0] == "Simple User-Profile (ERD)"
    assert client.get("/api/catalog/uml").status_code == 404


def test_workspace_lifecycle(client):
    workspace = _create(client, "dfd")
    assert [tab["name"] for tab in workspace["tabs"]] == ["DFD 1"]

    tab = client.post(f"/api/workspaces/{workspace['id']}/tabs").json()
    assert tab["name"] == "DFD 2"

    fetched = client.get(f"/api/workspaces/{workspace['id']}").json()
    assert fetched["active_tab_id"] == tab["id"]

    first_id = workspace["tabs"][0]["id"]
    fetched = client.post(f"/api/workspaces/{workspace['id']}/active", json={"tab_id": first_id}).json()
    assert fetched["active_tab_id"] == first_id

    fetched = client.delete(f"/api/workspaces/{workspace['id']}/tabs/{first_id}").json()
    assert [t["name"] for t in fetched["tabs"]] == ["DFD 2"]
    assert fetched["active_tab_id"] == tab["id"]


def test_unknown_workspace_and_tab(client):
    assert client.get("/api/workspaces/00000000-0000-0000-0000-000000000000").status_code == 404
    workspace = _create(client)
    response = client.delete(f"/api/workspaces/{workspace['id']}/tabs/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404
    assert "Unknown tab" in response.json()["error"]


def test_rename_flow(client):
    workspace = _create(client)
    tab_id = workspace["tabs"][0]["id"]
    url = f"/api/workspaces/{workspace['id']}/rename"

    began = client.post(url, json={"action": "begin", "tab_id": tab_id}).json()
    assert began["workspace"]["renaming_tab_id"] == tab_id
    assert began["workspace"]["rename_text"] == "ERD 1"

    committed = client.post(url, json={"action": "commit", "text": "Inventory"}).json()
    assert committed["workspace"]["tabs"][0]["name"] == "Inventory"
    assert committed["notice"]["title"] == "Diagram Renamed"

    client.post(url, json={"action": "begin", "tab_id": tab_id})
    rejected = client.post(url, json={"action": "commit", "text": "  "}).json()
    assert rejected["notice"]["level"] == "error"
    assert rejected["workspace"]["tabs"][0]["name"] == "Inventory"
    assert rejected["workspace"]["renaming_tab_id"] is None


def test_buffer_endpoints(client):
    workspace = _create(client)
    base = f"/api/workspaces/{workspace['id']}/tabs/{workspace['tabs'][0]['id']}"

    inserted = client.post(f"{base}/snippets", json={"tool_label": "Theme: Forest"}).json()
    assert inserted["snippet_kind"] == "theme"
    assert inserted["notice"]["message"] == "Set theme to: forest"
    assert inserted["tab"]["content"].startswith("%%{init: {'theme': 'forest'}}%%\nerDiagram")

    cleared = client.post(f"{base}/clear").json()
    assert cleared["content"] == "erDiagram\n"

    example = client.post(f"{base}/example", json={"label": "Blogging Platform (ERD)"}).json()
    assert example["content"].startswith("erDiagram")
    assert client.post(f"{base}/example", json={"label": "Nope"}).status_code == 404

    updated = client.put(f"{base}/content", json={"content": "erDiagram\n  A ||--o{ B : has"}).json()
    assert updated["content"] == "erDiagram\n  A ||--o{ B : has"

    assert client.post(f"{base}/snippets", json={}).status_code == 400


def test_export_endpoint(client, monkeypatch):
    workspace = _create(client)
    base = f"/api/workspaces/{workspace['id']}/tabs/{workspace['tabs'][0]['id']}"

    response = client.get(f"{base}/export/mmd")
    assert response.status_code == 200
    assert 'filename="ERD_1.mmd"' in response.headers["content-disposition"]
    assert response.text.startswith("erDiagram")

    monkeypatch.setattr(export, "render_mermaid_svg", lambda text: "<svg>rendered</svg>")
    response = client.get(f"{base}/export/svg")
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert response.text == "<svg>rendered</svg>"

    assert client.get(f"{base}/export/pdf").status_code == 400


def test_render_endpoint_maps_errors(client, monkeypatch):
    monkeypatch.setattr(server, "render_mermaid_svg", lambda text: "<svg/>")
    assert client.post("/api/render", json={"markup": "graph TD"}).json() == {"svg": "<svg/>"}

    monkeypatch.undo()
    response = client.post("/api/render", json={"markup": "not a diagram"})
    assert response.status_code == 502
    assert "valid Mermaid syntax" in response.json()["error"]


def test_generate_applies_to_workspace(client, monkeypatch):
    _fake_openai(monkeypatch, '{"diagramContent": "erDiagram\\n  USER ||--o{ ORDER : places"}')
    workspace = _create(client, "ai")

    response = client.post(
        "/api/ai/generate",
        json={"description": "Users place many orders", "kind": "ER", "workspace_id": workspace["id"]},
    ).json()

    assert response["message"] == "Diagram generated successfully!"
    assert response["tab"]["name"] == "ER Diagram 1"
    assert response["tab"]["kind"] == "ER"

    db = TestingSessionLocal()
    try:
        audit = db.scalars(select(LlmAudit)).one()
        assert audit.tool_name == "generate_diagram"
        assert str(audit.workspace_id) == workspace["id"]
    finally:
        db.close()


def test_generate_validation_errors(client):
    response = client.post("/api/ai/generate", json={"description": "short", "kind": "DFD"}).json()
    assert response["diagram_content"] is None
    assert "textDescription" in response["field_errors"]


def test_sql_endpoint(client, monkeypatch):
    _fake_openai(monkeypatch, '{"sqlCode": "CREATE TABLE users (id SERIAL PRIMARY KEY);"}')
    response = client.post("/api/ai/sql", json={"mermaid_code": "erDiagram\n  USER { int id PK }"}).json()
    assert response["sql_code"] == "CREATE TABLE users (id SERIAL PRIMARY KEY);"


def test_explain_endpoint_uses_tab_content(client, monkeypatch):
    _fake_openai(monkeypatch, '{"summary": "Shows how orders are processed."}')
    seen = {}

    def fake_png(text):
        seen["text"] = text
        return b"\x89PNG"

    monkeypatch.setattr(ai_service, "render_mermaid_png", fake_png)
    workspace = _create(client, "dfd")
    tab = workspace["tabs"][0]

    response = client.post(
        "/api/ai/explain", json={"workspace_id": workspace["id"], "tab_id": tab["id"]}
    ).json()
    assert response["summary"] == "Shows how orders are processed."
    assert seen["text"] == tab["content"]

    untitled = _create(client, "ai")
    response = client.post(
        "/api/ai/explain", json={"workspace_id": untitled["id"], "tab_id": untitled["tabs"][0]["id"]}
    )
    assert response.status_code == 400
