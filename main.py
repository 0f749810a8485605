from contextlib import asynccontextmanager
from fastapi import FastAPI
from dotenv import load_dotenv
import os
import logging
from services.database import close_engine
from routers import artifacts

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Validate required environment variables
REQUIRED_ENV_VARS = ["OPENAI_API_KEY"]


def validate_environment():
    """Validate that all required environment variables are set."""
    missing = [var for var in REQUIRED_ENV_VARS if not os.getenv(var)]
    if missing:
        logger.error(f"Missing required environment variables: {missing}")
        raise RuntimeError(f"Missing required environment variables: {missing}")
    logger.info("Environment validation passed")


def log_persistence_status():
    """Log whether LLM interactions are persisted to Postgres."""
    if os.getenv("DATABASE_URL"):
        logger.info("LLM interaction persistence ENABLED")
    else:
        logger.warning("LLM interaction persistence DISABLED (DATABASE_URL not set)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_environment()
    log_persistence_status()
    yield
    await close_engine()


app = FastAPI(lifespan=lifespan)

# Include routers
app.include_router(artifacts.router)


@app.get("/health")
def health():
    return {"status": "ok"}
