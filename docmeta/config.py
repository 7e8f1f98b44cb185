"""Configuration loading for docmeta (.docmeta.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml

from .prompting.constants import DEFAULT_CONTENT_LIMIT

CONFIG_FILENAME = ".docmeta.yml"


class ConfigError(RuntimeError):
    """Raised when configuration is unparseable or a required parameter is missing."""


@dataclass
class GitHubConfig:
    """Repository coordinates and publishing conventions."""

    owner: Optional[str] = None
    repo: Optional[str] = None
    token: Optional[str] = None
    api_url: str = "https://api.github.com"
    base_branch: str = "main"
    head_branch: str = "ai-metadata"
    pages_root: str = "src/pages"
    commit_message: str = "[ai-generated]Update metadata for all documentation files"
    pr_title: str = "[AI PR] Metadata Update: Generated metadata for documentation files"
    review_body: str = "AI suggestions"


@dataclass
class LLMConfig:
    """Completion endpoint settings."""

    endpoint: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    api_key_header: str = "authorization"
    temperature: float = 1.0
    max_tokens: int = 800
    request_timeout: float = 60.0
    max_retries: int = 3
    retry_base_delay: float = 1.0


@dataclass
class EdgeEnvironment:
    """Site and code branch targeted by one deploy environment."""

    site: str
    code_branch: str
    content_source_auth: bool = False


@dataclass
class EdgeConfig:
    """Edge publish service settings."""

    admin_url: str = "https://admin.hlx.page"
    preview_domain: str = "aem.page"
    org: Optional[str] = None
    path_prefix: str = ""
    pages_root: str = "src/pages"
    batch_size: int = 5
    request_timeout: float = 60.0
    environments: Dict[str, EdgeEnvironment] = field(default_factory=dict)


@dataclass
class PipelineConfig:
    """Settings passed explicitly to every pipeline entry point."""

    root: Path
    github: GitHubConfig = field(default_factory=GitHubConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    edge: EdgeConfig = field(default_factory=EdgeConfig)
    content_limit: int = DEFAULT_CONTENT_LIMIT
    batch_file: str = "pages_content.txt"
    generated_file: str = "ai_content.txt"
    summary_file: str = "summaries.txt"

    def require_github(self) -> GitHubConfig:
        missing = [
            name
            for name, value in (
                ("github.owner", self.github.owner),
                ("github.repo", self.github.repo),
                ("github.token", self.github.token),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing required parameter(s): {', '.join(missing)}")
        return self.github

    def require_llm(self) -> LLMConfig:
        if not self.llm.endpoint or not self.llm.api_key:
            raise ConfigError("Missing required parameter(s): llm.endpoint and llm.api_key")
        return self.llm

    def require_edge(self, environment: str) -> EdgeEnvironment:
        if not self.edge.org:
            raise ConfigError("Missing required parameter: edge.org")
        env = _match_environment(self.edge.environments, environment)
        if env is None:
            raise ConfigError(f"Unknown env to deploy to: {environment}")
        return env


def load_config(
    config_path: Path, *, env: Mapping[str, str] | None = None
) -> PipelineConfig:
    """Load configuration from disk and apply environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    environ = os.environ if env is None else env

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    github_data = _as_dict(data.get("github"))
    github = GitHubConfig(
        owner=_as_str(github_data.get("owner")),
        repo=_as_str(github_data.get("repo")),
        token=_as_str(github_data.get("token")),
    )
    for name in ("api_url", "base_branch", "head_branch", "pages_root", "commit_message", "pr_title", "review_body"):
        value = _as_str(github_data.get(name))
        if value:
            setattr(github, name, value)
    github.owner = environ.get("GITHUB_OWNER") or github.owner
    github.repo = environ.get("GITHUB_REPO") or github.repo
    github.token = environ.get("GITHUB_TOKEN") or github.token

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        endpoint=_as_str(llm_data.get("endpoint")),
        model=_as_str(llm_data.get("model")),
        api_key=_as_str(llm_data.get("api_key")),
    )
    header = _as_str(llm_data.get("api_key_header"))
    if header:
        llm.api_key_header = header.lower()
    for name, caster in (
        ("temperature", _as_float),
        ("max_tokens", _as_int),
        ("request_timeout", _as_float),
        ("max_retries", _as_int),
        ("retry_base_delay", _as_float),
    ):
        value = caster(llm_data.get(name))
        if value is not None:
            setattr(llm, name, value)
    llm.endpoint = _first(environ, ("DOCMETA_LLM_ENDPOINT", "AZURE_OPENAI_ENDPOINT")) or llm.endpoint
    llm.api_key = _first(environ, ("DOCMETA_LLM_API_KEY", "AZURE_OPENAI_API_KEY")) or llm.api_key
    llm.model = _first(environ, ("DOCMETA_LLM_MODEL",)) or llm.model

    edge = _load_edge(_as_dict(data.get("edge")))

    config = PipelineConfig(root=root, github=github, llm=llm, edge=edge)
    content_limit = _as_int(data.get("content_limit"))
    if content_limit is not None:
        config.content_limit = content_limit
    files_data = _as_dict(data.get("files"))
    config.batch_file = _as_str(files_data.get("batch")) or config.batch_file
    config.generated_file = _as_str(files_data.get("generated")) or config.generated_file
    config.summary_file = _as_str(files_data.get("summaries")) or config.summary_file
    return config


def _load_edge(edge_data: Dict[str, Any]) -> EdgeConfig:
    edge = EdgeConfig(org=_as_str(edge_data.get("org")))
    for name in ("admin_url", "preview_domain", "path_prefix", "pages_root"):
        value = _as_str(edge_data.get(name))
        if value is not None:
            setattr(edge, name, value)
    batch_size = _as_int(edge_data.get("batch_size"))
    if batch_size is not None:
        if batch_size < 1:
            raise ConfigError("edge.batch_size must be at least 1")
        edge.batch_size = batch_size
    timeout = _as_float(edge_data.get("request_timeout"))
    if timeout is not None:
        edge.request_timeout = timeout

    for name, raw in _as_dict(edge_data.get("environments")).items():
        env_data = _as_dict(raw)
        site = _as_str(env_data.get("site"))
        code_branch = _as_str(env_data.get("code_branch"))
        if not site or not code_branch:
            raise ConfigError(f"edge.environments.{name} needs both site and code_branch")
        edge.environments[str(name)] = EdgeEnvironment(
            site=site,
            code_branch=code_branch,
            content_source_auth=_as_bool(env_data.get("content_source_auth")) or False,
        )
    return edge


def _match_environment(
    environments: Mapping[str, EdgeEnvironment], requested: str
) -> Optional[EdgeEnvironment]:
    if requested in environments:
        return environments[requested]
    # Workflow inputs often carry decorated names such as "stage-deploy".
    for name, env in environments.items():
        if name in requested:
            return env
    return None


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _first(environ: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = environ.get(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "EdgeConfig",
    "EdgeEnvironment",
    "GitHubConfig",
    "LLMConfig",
    "PipelineConfig",
    "load_config",
]
