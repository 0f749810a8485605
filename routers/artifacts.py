"""
Artifact generation router.

This router provides the POST /artifacts/process endpoint that turns a
transcript plus a scenario system prompt and output schema into a validated
JSON artifact.
"""

import logging
import os
import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from models.llm_result import LLMErrorCode, PRECONDITION_ERROR_CODES
from models.transcript_request import ProcessTranscriptRequest
from services.artifact_service import ArtifactService
from services.interaction_recorder import (
    DatabaseInteractionRecorder,
    InteractionRecorder,
    LoggingInteractionRecorder,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artifacts", tags=["artifacts"])

_ERROR_STATUS_CODES = {
    LLMErrorCode.INVALID_AUTH: 502,
    LLMErrorCode.API_ERROR: 502,
    LLMErrorCode.INVALID_RESPONSE: 422,
    LLMErrorCode.REPAIR_FAILED: 422,
    LLMErrorCode.SCHEMA_VALIDATION_FAILED: 422,
    LLMErrorCode.INTERNAL_ERROR: 500,
}

_artifact_service: Optional[ArtifactService] = None


def status_code_for(code: LLMErrorCode) -> int:
    """HTTP status for an engine error code."""
    if code in PRECONDITION_ERROR_CODES:
        return 400
    return _ERROR_STATUS_CODES.get(code, 500)


def _build_recorder() -> InteractionRecorder:
    if os.getenv("DATABASE_URL"):
        logger.info("LLM interactions will be persisted to the database")
        return DatabaseInteractionRecorder()
    logger.info("DATABASE_URL not set; LLM interactions will be logged only")
    return LoggingInteractionRecorder()


def get_artifact_service() -> ArtifactService:
    """Get or create the shared ArtifactService."""
    global _artifact_service

    if _artifact_service is None:
        _artifact_service = ArtifactService(recorder=_build_recorder())

    return _artifact_service


@router.post("/process")
async def process_transcript(
    body: ProcessTranscriptRequest,
    service: ArtifactService = Depends(get_artifact_service),
):
    """
    Generate a structured artifact from a transcript.

    Args:
        body: Transcript segments, system prompt, output schema and meeting metadata
        service: Injected ArtifactService

    Returns:
        ``{"data": {...}}`` on success, ``{"error": {...}}`` with a 4xx/5xx status otherwise
    """
    if not body.request_id:
        body.request_id = str(uuid.uuid4())

    logger.info(
        f"Artifact request received: request_id={body.request_id}, "
        f"segments={len(body.transcript_segments)}"
    )

    result = await service.process_transcript(body)

    if result.is_success:
        return JSONResponse(status_code=200, content={"data": result.data})

    error = result.error
    logger.warning(
        f"Artifact request failed: request_id={body.request_id}, code={error.code.value}"
    )
    return JSONResponse(
        status_code=status_code_for(error.code),
        content={"error": error.model_dump(mode="json", exclude_none=True)},
    )
