"""Run routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from comfyrun.config import settings
from comfyrun.database import get_db
from comfyrun.errors import DuplicateJob, InvalidResponse, RetriesExhausted, Unauthenticated
from comfyrun.routes.dependencies import get_current_user_id
from comfyrun.schemas.run import GenerateRequest, GenerateResponse, RunStatus, RunSummary
from comfyrun.services.prompt_optimizer import PromptOptimizer
from comfyrun.services.run_store import RunStore
from comfyrun.services.submitter import JobSubmitter, SubmitterConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["runs"])


def get_prompt_optimizer() -> PromptOptimizer:
    return PromptOptimizer()


def get_submitter_config(request: Request) -> SubmitterConfig:
    """Build the submitter config with the webhook pointing back at this host."""
    base_url = settings.PUBLIC_BASE_URL or str(request.base_url)
    return SubmitterConfig.from_settings(webhook_url=f"{base_url.rstrip('/')}/api/webhook")


def get_submitter(
    config: SubmitterConfig = Depends(get_submitter_config),
    optimizer: PromptOptimizer = Depends(get_prompt_optimizer),
    db: Session = Depends(get_db),
) -> JobSubmitter:
    return JobSubmitter(config, RunStore(db), optimizer)


def _error(status_code: int, error: Exception) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": error.code, "message": str(error)})


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    data: GenerateRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    submitter: JobSubmitter = Depends(get_submitter),
):
    """Submit a prompt for image generation."""
    try:
        run_id = await submitter.submit(data.prompt, user_id)
    except Unauthenticated as e:
        raise _error(401, e)
    except RetriesExhausted as e:
        # Low severity: the UI suppresses this instead of showing an error
        logger.warning(f"504 Gateway Timeout ignored: {e}")
        raise _error(504, e)
    except InvalidResponse as e:
        logger.error(f"Error generating image: {e}")
        raise _error(502, e)
    except DuplicateJob as e:
        logger.error(f"Store consistency violation: {e}")
        raise _error(409, e)

    return GenerateResponse(run_id=run_id)


@router.get("/status/{run_id}", response_model=RunStatus)
def get_run_status(
    run_id: str,
    db: Session = Depends(get_db),
):
    """Get run status; an image URL signals completion."""
    run = RunStore(db).get(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")

    return RunStatus(run_id=run.run_id, status=run.status, image_url=run.image_url)


@router.get("/runs", response_model=List[RunSummary])
def list_runs(
    limit: int = Query(50, ge=1, le=200),
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List the current user's runs, newest first."""
    if not user_id:
        raise HTTPException(status_code=401, detail={"code": "unauthenticated", "message": "User not found"})

    runs = RunStore(db).list_for_user(user_id, limit=limit)
    return [
        RunSummary(
            run_id=r.run_id,
            status=r.status,
            image_url=r.image_url,
            inputs=r.inputs,
            created_at=r.created_at,
        )
        for r in runs
    ]
