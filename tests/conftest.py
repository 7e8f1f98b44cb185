from __future__ import annotations

from pathlib import Path

import pytest

from docmeta.config import GitHubConfig, LLMConfig, PipelineConfig


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    """Provide a fully populated configuration rooted at the pytest tmp_path."""
    return PipelineConfig(
        root=tmp_path,
        github=GitHubConfig(owner="acme", repo="docs", token="gh-token"),
        llm=LLMConfig(endpoint="https://llm.test/openai", api_key="llm-key"),
    )
