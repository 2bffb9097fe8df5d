"""Run-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Schema for submitting a prompt."""

    prompt: str = Field(..., min_length=1)


class GenerateResponse(BaseModel):
    """Response after the provider accepted a job."""

    run_id: str


class RunStatus(BaseModel):
    """Run status as served to pollers."""

    run_id: str
    status: str  # 'pending' or 'complete'
    image_url: Optional[str] = None


class RunSummary(BaseModel):
    """Run entry in a user's run list."""

    run_id: str
    status: str
    image_url: Optional[str] = None
    inputs: Dict[str, Any]
    created_at: Optional[datetime] = None


class WebhookPayload(BaseModel):
    """Provider completion callback.

    ComfyDeploy posts the run id, its status and the workflow outputs. A flat
    ``image_url`` is accepted as well.
    """

    run_id: str
    status: Optional[str] = None
    image_url: Optional[str] = None
    outputs: Optional[List[Dict[str, Any]]] = None

    def first_image_url(self) -> Optional[str]:
        """Return the first image URL carried by the callback, if any."""
        if self.image_url:
            return self.image_url
        for output in self.outputs or []:
            data = output.get("data") or {}
            if not isinstance(data, dict):
                continue
            for image in data.get("images") or []:
                if isinstance(image, dict) and image.get("url"):
                    return image["url"]
        return None


class WebhookAck(BaseModel):
    """Webhook acknowledgement."""

    run_id: str
    updated: bool
