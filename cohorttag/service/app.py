"""FastAPI application entrypoint for cohorttag service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..classifier import Classifier
from ..config import ClassificationConfig, ConfigError
from ..models import (
    CohortClassification,
    CommitRiskInputs,
    CommitRiskScore,
    ExtractionFailure,
    Fingerprint,
    RepositoryFingerprints,
)
from ..report import cohort_to_dict, score_to_dict
from ..taggers import RuleDefinitionError, RuleEvaluationError


class FingerprintModel(BaseModel):
    type: str = Field(min_length=1)
    name: str = ""
    path: str = ""
    data: Any = None

    def to_fingerprint(self) -> Fingerprint:
        return Fingerprint(type=self.type, name=self.name, path=self.path, data=self.data)


class FailureModel(BaseModel):
    message: str
    aspect: Optional[str] = None


class RepositoryModel(BaseModel):
    repo_id: str = Field(min_length=1)
    fingerprints: List[FingerprintModel] = Field(default_factory=list)
    failures: List[FailureModel] = Field(default_factory=list)

    def to_repository(self) -> RepositoryFingerprints:
        return RepositoryFingerprints(
            repo_id=self.repo_id,
            fingerprints=tuple(fp.to_fingerprint() for fp in self.fingerprints),
            failures=tuple(
                ExtractionFailure(repo_id=self.repo_id, message=item.message, aspect=item.aspect)
                for item in self.failures
            ),
        )


class Overrides(BaseModel):
    max_branches: Optional[int] = None
    dead_days: Optional[int] = None
    min_average_aspect_count_fraction: Optional[float] = None
    hot_days: Optional[int] = None
    hot_contributors: Optional[int] = None
    file_change_limit: Optional[int] = None


class ClassifyRequest(BaseModel):
    repositories: List[RepositoryModel] = Field(default_factory=list)
    overrides: Overrides = Field(default_factory=Overrides)


class TagModel(BaseModel):
    name: str
    description: str
    severity: str


class RepositoryResult(BaseModel):
    repo_id: str
    tags: List[TagModel]
    distinct_type_count: int
    activity: Optional[str] = None
    failures: List[FailureModel]


class TagContextModel(BaseModel):
    average_fingerprint_count: float
    repository_count: int


class ClassifyResponse(BaseModel):
    tag_context: TagContextModel
    repositories: List[RepositoryResult]
    tag_counts: Dict[str, int]


class ScoreRequest(BaseModel):
    changed_files: List[str] = Field(default_factory=list)
    fingerprints: List[FingerprintModel] = Field(default_factory=list)
    indicators: Dict[str, bool] = Field(default_factory=dict)
    repo_id: Optional[str] = None
    sha: Optional[str] = None
    overrides: Overrides = Field(default_factory=Overrides)

    def to_inputs(self) -> CommitRiskInputs:
        return CommitRiskInputs(
            changed_files=tuple(self.changed_files),
            fingerprints=tuple(fp.to_fingerprint() for fp in self.fingerprints),
            indicators=dict(self.indicators),
            repo_id=self.repo_id,
            sha=self.sha,
        )


class ContributionModel(BaseModel):
    scorer: str
    score: float
    reason: str


class ScoreResponse(BaseModel):
    score: float
    contributions: List[ContributionModel]


class HealthResponse(BaseModel):
    status: str


ClassifierFactory = Callable[[ClassificationConfig], Classifier]


def _default_classifier(config: ClassificationConfig) -> Classifier:
    return Classifier(config)


def create_app(
    classifier_factory: ClassifierFactory = _default_classifier,
    config: ClassificationConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application exposing classification and scoring."""

    base_config = config or ClassificationConfig()
    app = FastAPI(title="cohorttag", version="0.1.0")

    async def get_config() -> ClassificationConfig:
        return base_config

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/classify", response_model=ClassifyResponse)
    async def classify_cohort(
        payload: ClassifyRequest,
        run_config: ClassificationConfig = Depends(get_config),
    ) -> Dict[str, Any]:
        effective = run_config.with_overrides(**payload.overrides.model_dump())
        repositories = [repo.to_repository() for repo in payload.repositories]

        def _run() -> CohortClassification:
            return classifier_factory(effective).classify_cohort(repositories)

        result = await asyncio.get_running_loop().run_in_executor(None, _run)
        return cohort_to_dict(result)

    @app.post("/score", response_model=ScoreResponse)
    async def score_change(
        payload: ScoreRequest,
        run_config: ClassificationConfig = Depends(get_config),
    ) -> Dict[str, Any]:
        effective = run_config.with_overrides(**payload.overrides.model_dump())
        inputs = payload.to_inputs()

        def _run() -> CommitRiskScore:
            return classifier_factory(effective).score_change(inputs)

        result = await asyncio.get_running_loop().run_in_executor(None, _run)
        return score_to_dict(result)

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RuleDefinitionError)
    async def rule_definition_error_handler(_: Any, exc: RuleDefinitionError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RuleEvaluationError)
    async def rule_evaluation_error_handler(_: Any, exc: RuleEvaluationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc), "rule": exc.rule})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config: ClassificationConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
