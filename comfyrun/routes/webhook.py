"""Provider webhook route."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from comfyrun.database import get_db
from comfyrun.schemas.run import WebhookAck, WebhookPayload
from comfyrun.services.run_store import RunStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["webhook"])


@router.post("/webhook", response_model=WebhookAck)
def receive_webhook(
    data: WebhookPayload,
    db: Session = Depends(get_db),
):
    """
    Receive a ComfyDeploy run callback.

    Deliveries may be missing, repeated or out of order. Only the first
    callback carrying an image URL updates the run.
    """
    logger.info(f"Webhook for run {data.run_id} (status: {data.status})")

    image_url = data.first_image_url()
    if not image_url:
        return WebhookAck(run_id=data.run_id, updated=False)

    store = RunStore(db)
    if store.get(data.run_id) is None:
        logger.warning(f"Webhook for unknown run {data.run_id}, ignoring")
        return WebhookAck(run_id=data.run_id, updated=False)

    updated = store.mark_complete(data.run_id, image_url)
    return WebhookAck(run_id=data.run_id, updated=updated)
