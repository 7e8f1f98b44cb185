"""FastAPI application entrypoint for docmeta service mode."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError, PipelineConfig, load_config
from ..frontmatter.complexity import ComplexityClassifier
from ..frontmatter.merger import MetadataMerger
from ..frontmatter.reconcile import Reconciler
from ..models import Document
from ..prompting.builder import PromptBuilder


class ClassifyRequest(BaseModel):
    body: str = ""


class ClassifyResponse(BaseModel):
    score: str
    faq_count: int
    length: int
    heading_count: int
    code_block_count: int


class ReconcileRequest(BaseModel):
    raw_text: str
    generated_text: str


class SuggestionModel(BaseModel):
    start_line: int
    end_line: int
    replacement_text: str


class ReconcileResponse(BaseModel):
    had_frontmatter: bool
    structured: bool
    faq_count: int
    final_block: str
    document: str
    suggestion: SuggestionModel


class PromptPreviewRequest(BaseModel):
    raw_text: str
    path: str = "page.md"


class PromptResponse(BaseModel):
    kind: str
    faq_count: int
    system_prompt: str
    user_prompt: str


class HealthResponse(BaseModel):
    status: str


def _default_config() -> PipelineConfig:
    return PipelineConfig(root=Path.cwd())


def create_app(
    config_factory: Callable[[], PipelineConfig] = _default_config,
) -> FastAPI:
    """Create the FastAPI application exposing the reconciliation engine."""

    app = FastAPI(title="docmeta service", version="1.0.0")

    async def get_config() -> PipelineConfig:
        # Resolved per request so configuration edits apply without a restart.
        return config_factory()

    async def get_reconciler() -> Reconciler:
        return Reconciler(merger=MetadataMerger(), classifier=ComplexityClassifier())

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/frontmatter/classify", response_model=ClassifyResponse)
    async def classify(payload: ClassifyRequest) -> ClassifyResponse:
        result = ComplexityClassifier().classify(payload.body)
        return ClassifyResponse(
            score=result.score,
            faq_count=result.faq_count,
            length=result.length,
            heading_count=result.heading_count,
            code_block_count=result.code_block_count,
        )

    @app.post("/frontmatter/reconcile", response_model=ReconcileResponse)
    async def reconcile(
        payload: ReconcileRequest,
        reconciler: Reconciler = Depends(get_reconciler),
    ) -> ReconcileResponse:
        result = reconciler.reconcile(payload.raw_text, payload.generated_text)
        return ReconcileResponse(
            had_frontmatter=result.had_frontmatter,
            structured=result.structured,
            faq_count=result.complexity.faq_count,
            final_block=result.final_block,
            document=result.document,
            suggestion=SuggestionModel(
                start_line=result.suggestion.start_line,
                end_line=result.suggestion.end_line,
                replacement_text=result.suggestion.replacement_text,
            ),
        )

    @app.post("/frontmatter/prompt", response_model=PromptResponse)
    async def prompt(
        payload: PromptPreviewRequest,
        config: PipelineConfig = Depends(get_config),
        reconciler: Reconciler = Depends(get_reconciler),
    ) -> PromptResponse:
        document = Document.from_text(payload.path, payload.raw_text, reconciler.detector)
        complexity = reconciler.classifier.classify(document.body)
        builder = PromptBuilder(
            content_limit=config.content_limit,
            max_tokens=config.llm.max_tokens,
            temperature=config.llm.temperature,
        )
        request = builder.build_for(document, faq_count=complexity.faq_count)
        return PromptResponse(
            kind=request.kind,
            faq_count=complexity.faq_count,
            system_prompt=request.system_prompt or "",
            user_prompt=request.user_prompt,
        )

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1",
    port: int = 8000,
    config_path: Optional[Path] = None,
) -> None:  # pragma: no cover - integration path
    factory = (lambda: load_config(config_path)) if config_path is not None else _default_config
    app = create_app(factory)
    uvicorn.run(app, host=host, port=port)
