"""Persistence for accepted generation runs."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from comfyrun.errors import DuplicateJob
from comfyrun.models.run import Run

logger = logging.getLogger(__name__)


class RunStore:
    """Single write path for runs and read path for status queries."""

    def __init__(self, db: Session):
        """Initialize the store on a database session."""
        self.db = db

    def create(self, run_id: str, user_id: str, inputs: Dict[str, Any]) -> Run:
        """
        Persist a run accepted by the provider.

        Args:
            run_id: Provider-assigned run identifier
            user_id: Requesting principal
            inputs: Exact input record sent to the provider

        Returns:
            The created Run

        Raises:
            DuplicateJob: If a run with this id already exists
        """
        if self.get(run_id) is not None:
            raise DuplicateJob(run_id)

        run = Run(run_id=run_id, user_id=user_id, inputs=dict(inputs))
        self.db.add(run)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent insert of the same id
            self.db.rollback()
            raise DuplicateJob(run_id)

        logger.info(f"Created run {run_id} for user {user_id}")
        return run

    def mark_complete(self, run_id: str, image_url: str) -> bool:
        """
        Record the image URL for a run if none is recorded yet.

        The conditional update is the only coordination between the webhook
        and the status poller: the first writer wins and later calls are
        no-ops.

        Returns:
            True if this call set the URL, False otherwise
        """
        updated = (
            self.db.query(Run)
            .filter(Run.run_id == run_id, Run.image_url.is_(None))
            .update(
                {Run.image_url: image_url, Run.completed_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        self.db.commit()

        if updated:
            logger.info(f"Run {run_id} completed: {image_url}")
        else:
            logger.info(f"Run {run_id} already complete or unknown, ignoring update")
        return bool(updated)

    def get(self, run_id: str) -> Optional[Run]:
        """Get a run by provider id."""
        return self.db.query(Run).filter(Run.run_id == run_id).first()

    def list_for_user(self, user_id: str, limit: int = 50) -> List[Run]:
        """List a user's runs, newest first."""
        return (
            self.db.query(Run)
            .filter(Run.user_id == user_id)
            .order_by(Run.created_at.desc())
            .limit(limit)
            .all()
        )
