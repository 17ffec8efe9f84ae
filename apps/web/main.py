"""FastAPI web application for composer-migrate.

Serves a read-only preview of a migration: nothing is installed or
committed, the response only describes what `composer-migrate migrate`
would add to the target project.
"""

from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from core.extra import plan_extra
from core.manifest import drupal_core_dependencies, missing_packages
from core.models import Dependency

app = FastAPI(
    title="composer-migrate",
    description="Preview composer.json migrations into Composer-managed Drupal projects",
    version="0.1.0",
)


class PlanRequest(BaseModel):
    """Request model for a migration preview."""
    source: Any
    target: Any = None


class DependencyModel(BaseModel):
    """A package the migration would require."""
    package: str
    version: Optional[str] = None
    is_dev: bool = False


class PlanResponse(BaseModel):
    """Response model for a migration preview."""
    core_dependencies: list[DependencyModel]
    missing_packages: list[DependencyModel]
    minimum_stability: Optional[str] = None
    extra: dict[str, Any]
    warnings: list[str]


@app.get("/api/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/api/plan", response_model=PlanResponse)
async def plan_migration(request: PlanRequest):
    """Describe what a migration of `source` into `target` would change."""
    try:
        source = request.source
        target = request.target if request.target is not None else {}

        if not isinstance(source, dict) or not source:
            raise HTTPException(status_code=400, detail="Source manifest must be a non-empty JSON object")
        if not isinstance(target, dict):
            raise HTTPException(status_code=400, detail="Target manifest must be a JSON object")

        extra, warnings = plan_extra(source, target)

        return PlanResponse(
            core_dependencies=[_to_model(dep) for dep in drupal_core_dependencies(source)],
            missing_packages=[_to_model(dep) for dep in missing_packages(source, target)],
            minimum_stability=source.get("minimum-stability", target.get("minimum-stability")),
            extra=extra,
            warnings=warnings,
        )

    except HTTPException:
        # Re-raise HTTP exceptions (don't convert to 500)
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error planning migration: {str(e)}")


def _to_model(dependency: Dependency) -> DependencyModel:
    return DependencyModel(
        package=dependency.package,
        version=dependency.version,
        is_dev=dependency.is_dev,
    )
