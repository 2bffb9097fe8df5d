"""FastAPI application entry point."""

import logging
import os

import sqlalchemy
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from comfyrun.routes import runs, webhook

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="ComfyRun",
    description="Prompt-to-image job submission and completion tracking for ComfyDeploy",
    version="0.1.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(runs.router)
app.include_router(webhook.router)


@app.on_event("startup")
def startup_event():
    """Create the schema with Alembic if the runs table is missing."""
    logger.info("Starting application...")

    from comfyrun.database import engine

    try:
        table_exists = sqlalchemy.inspect(engine).has_table("runs")

        if table_exists:
            logger.info("Database tables already exist, skipping migrations")
        else:
            logger.info("Running database migrations...")
            from alembic import command
            from alembic.config import Config

            alembic_cfg = Config(os.path.join(os.path.dirname(os.path.dirname(__file__)), "alembic.ini"))
            command.upgrade(alembic_cfg, "head")
            logger.info("Database migrations completed successfully")
    except Exception as e:
        logger.error(f"Startup database check/migration error: {e}")
        logger.info("Continuing startup - assuming database is ready")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "ComfyRun",
        "version": "0.1.0",
        "status": "running",
    }


def main():
    """Entry point for running the API server."""
    import uvicorn

    uvicorn.run("comfyrun.main:app", host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))


if __name__ == "__main__":
    main()
