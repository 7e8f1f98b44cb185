"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from docmeta.config import PipelineConfig, load_config
from docmeta.service.app import create_app


def _client(tmp_path: Path, content_limit: int = 8000) -> TestClient:
    config = PipelineConfig(root=tmp_path, content_limit=content_limit)
    return TestClient(create_app(lambda: config))


def test_health(tmp_path: Path) -> None:
    response = _client(tmp_path).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_classify(tmp_path: Path) -> None:
    response = _client(tmp_path).post("/frontmatter/classify", json={"body": ""})

    assert response.status_code == 200
    payload = response.json()
    assert payload["score"] == "low"
    assert payload["faq_count"] == 2


def test_reconcile_adds_block_and_suggestion(tmp_path: Path) -> None:
    response = _client(tmp_path).post(
        "/frontmatter/reconcile",
        json={"raw_text": "# Title\n\nSome text", "generated_text": "description: D"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["had_frontmatter"] is False
    assert payload["structured"] is True
    assert payload["final_block"] == "---\ntitle: Title\ndescription: D\n---"
    assert payload["document"] == "---\ntitle: Title\ndescription: D\n---\n# Title\n\nSome text"
    assert payload["suggestion"] == {
        "start_line": 1,
        "end_line": 1,
        "replacement_text": "---\ntitle: Title\ndescription: D\n---\n# Title",
    }


def test_reconcile_requires_both_fields(tmp_path: Path) -> None:
    response = _client(tmp_path).post("/frontmatter/reconcile", json={"raw_text": "x"})

    assert response.status_code == 422


def test_prompt_preview_uses_configured_limit(tmp_path: Path) -> None:
    response = _client(tmp_path, content_limit=5).post(
        "/frontmatter/prompt",
        json={"raw_text": "---\ntitle: T\n---\nabcdefghij"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["kind"] == "edit"
    assert payload["faq_count"] == 2
    assert "abcde" in payload["user_prompt"]
    assert "abcdef" not in payload["user_prompt"]


def test_config_is_reloaded_for_each_request(tmp_path: Path) -> None:
    config_file = tmp_path / ".docmeta.yml"
    config_file.write_text("content_limit: 20\n", encoding="utf-8")
    client = TestClient(create_app(lambda: load_config(config_file, env={})))
    payload = {"raw_text": "# T\n\n" + "x" * 100}

    first = client.post("/frontmatter/prompt", json=payload)
    config_file.write_text("content_limit: [not, a, number\n", encoding="utf-8")
    broken = client.post("/frontmatter/prompt", json=payload)

    assert first.status_code == 200
    assert broken.status_code == 400
    assert "Failed to parse .docmeta.yml" in broken.json()["detail"]
