"""Artifact Service for turning transcripts into schema-conforming JSON.

Orchestrates one initial model call, at most one JSON-repair call (when the
answer cannot be parsed) and at most one schema-repair call (when the parsed
answer fails validation after enum normalization). Every call goes through
the transport retry controller; every outcome is recorded for auditing.

The caller always receives a ProcessTranscriptResult holding either the
validated artifact or exactly one structured error.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models.llm_interaction import AttemptStage, CallContext, TransportResponse
from models.llm_result import LLMErrorCode, ProcessTranscriptResult, ValidationOutcome
from models.transcript_request import ProcessTranscriptRequest
from services.interaction_recorder import (
    InteractionRecorder,
    LoggingInteractionRecorder,
    record_safely,
)
from services.openai_transport import ModelTransport, OpenAITransport
from services.prompt_builder import (
    build_json_repair_prompt,
    build_schema_repair_prompt,
    build_user_prompt,
)
from services.response_extractor import extract_json
from services.retry_controller import TransportError, TransportRetryController
from services.schema_introspector import SchemaTooDeepError
from services.schema_validator import validate_llm_response
from utils.llm_config import LLMConfig

logger = logging.getLogger(__name__)

RESPONSE_TEXT_PREVIEW_CHARS = 500
NOT_JSON_ERROR = "Response is not valid JSON"


class ArtifactService:
    """Generates a structured artifact from a transcript with bounded repair.

    Args:
        transport: Model transport; defaults to OpenAITransport
        recorder: Audit sink; defaults to LoggingInteractionRecorder
        config: Model and retry settings; defaults to LLMConfig.from_env()
        retry_controller: Overrides the controller built from the above
    """

    def __init__(
        self,
        transport: Optional[ModelTransport] = None,
        recorder: Optional[InteractionRecorder] = None,
        config: Optional[LLMConfig] = None,
        retry_controller: Optional[TransportRetryController] = None,
    ):
        self.config = config or LLMConfig.from_env()
        self.recorder = recorder or LoggingInteractionRecorder()
        self.transport = transport or OpenAITransport(self.config)
        self.retry_controller = retry_controller or TransportRetryController(
            transport=self.transport,
            recorder=self.recorder,
            max_attempts=self.config.max_retries,
            base_delay=self.config.retry_base_delay_seconds,
            call_timeout=self.config.timeout_seconds,
        )

    async def process_transcript(self, request: ProcessTranscriptRequest) -> ProcessTranscriptResult:
        """
        Produce the artifact for one transcript.

        Args:
            request: Transcript, system prompt, output schema and meeting context

        Returns:
            ProcessTranscriptResult with ``data`` on success, otherwise ``error``
        """
        precondition_error = self._check_preconditions(request)
        if precondition_error is not None:
            logger.warning(
                f"Rejected transcript request: request_id={request.request_id}, "
                f"code={precondition_error.error.code.value}"
            )
            return precondition_error

        try:
            return await self._generate(request)
        except SchemaTooDeepError as e:
            logger.error(f"Output schema too deep: request_id={request.request_id}, error={str(e)}")
            return ProcessTranscriptResult.failure(
                LLMErrorCode.INTERNAL_ERROR,
                details={"originalError": str(e), "reason": SchemaTooDeepError.code},
            )
        except Exception as e:
            logger.error(
                f"Artifact generation failed: request_id={request.request_id}, error={str(e)}",
                exc_info=True
            )
            return ProcessTranscriptResult.failure(
                LLMErrorCode.INTERNAL_ERROR,
                details={"originalError": str(e) or e.__class__.__name__},
            )

    def _check_preconditions(self, request: ProcessTranscriptRequest) -> Optional[ProcessTranscriptResult]:
        if not request.system_prompt or not request.system_prompt.strip():
            return ProcessTranscriptResult.failure(LLMErrorCode.MISSING_SYSTEM_PROMPT)

        if request.output_schema is None:
            return ProcessTranscriptResult.failure(LLMErrorCode.MISSING_OUTPUT_SCHEMA)

        if not request.transcript_segments:
            return ProcessTranscriptResult.failure(
                LLMErrorCode.MISSING_TRANSCRIPT,
                message="Transcript segments are required and must be a non-empty array",
            )

        if not any(segment.text and segment.text.strip() for segment in request.transcript_segments):
            return ProcessTranscriptResult.failure(
                LLMErrorCode.MISSING_TRANSCRIPT,
                message="Transcript segments must contain at least one segment with text",
            )

        return None

    async def _generate(self, request: ProcessTranscriptRequest) -> ProcessTranscriptResult:
        user_prompt = build_user_prompt(
            segments=request.transcript_segments,
            meeting_metadata=request.meeting_metadata,
            output_schema=request.output_schema,
            client_context_summary=request.client_context_summary,
        )
        logger.info(
            f"Generating artifact: request_id={request.request_id}, "
            f"segments={len(request.transcript_segments)}, prompt_length={len(user_prompt)}"
        )

        # Initial call
        context = self._context(request, 1, False, user_prompt)
        try:
            response = await self.retry_controller.call(context)
        except TransportError as e:
            return ProcessTranscriptResult.failure(e.code, details={"originalError": e.last_error_message})

        initial_text = response.text
        data = extract_json(response.text)

        # JSON repair
        if data is None:
            await self._record_evaluation(context, response, None, ValidationOutcome(valid=False, errors=[NOT_JSON_ERROR]))
            logger.info(f"Response is not JSON, requesting JSON repair: request_id={request.request_id}")

            context = self._context(request, context.attempt_number + 1, True, build_json_repair_prompt(user_prompt))
            try:
                response = await self.retry_controller.call(context)
            except TransportError as e:
                code = LLMErrorCode.INVALID_AUTH if e.code == LLMErrorCode.INVALID_AUTH else LLMErrorCode.REPAIR_FAILED
                return ProcessTranscriptResult.failure(code, details={"originalError": e.last_error_message})

            data = extract_json(response.text)
            if data is None:
                await self._record_evaluation(context, response, None, ValidationOutcome(valid=False, errors=[NOT_JSON_ERROR]))
                return ProcessTranscriptResult.failure(
                    LLMErrorCode.INVALID_RESPONSE,
                    details={"responseText": initial_text[:RESPONSE_TEXT_PREVIEW_CHARS]},
                )

        validation = validate_llm_response(data, request.output_schema)
        await self._record_evaluation(context, response, data, validation)
        if validation.valid:
            return self._accept(request, context, validation)

        # Schema repair
        first_errors = validation.errors
        logger.info(
            f"Response failed validation, requesting schema repair: "
            f"request_id={request.request_id}, errors={len(first_errors)}"
        )
        context = self._context(
            request,
            context.attempt_number + 1,
            True,
            build_schema_repair_prompt(user_prompt, first_errors),
        )
        try:
            response = await self.retry_controller.call(context)
        except TransportError as e:
            if e.code == LLMErrorCode.INVALID_AUTH:
                return ProcessTranscriptResult.failure(e.code, details={"originalError": e.last_error_message})
            return self._schema_validation_failed(first_errors)

        repair_data = extract_json(response.text)
        if repair_data is None:
            await self._record_evaluation(context, response, None, ValidationOutcome(valid=False, errors=[NOT_JSON_ERROR]))
            return self._schema_validation_failed(first_errors)

        repair_validation = validate_llm_response(repair_data, request.output_schema)
        await self._record_evaluation(context, response, repair_data, repair_validation)
        if repair_validation.valid:
            return self._accept(request, context, repair_validation)

        logger.warning(
            f"Schema repair failed: request_id={request.request_id}, "
            f"errors={len(repair_validation.errors)}"
        )
        return self._schema_validation_failed(first_errors)

    def _context(
        self,
        request: ProcessTranscriptRequest,
        attempt_number: int,
        is_repair_attempt: bool,
        user_prompt: str,
    ) -> CallContext:
        return CallContext(
            attempt_number=attempt_number,
            is_repair_attempt=is_repair_attempt,
            system_prompt=request.system_prompt,
            user_prompt=user_prompt,
            request_id=request.request_id,
            model=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_completion_tokens,
            request_metadata=self._request_metadata(request),
        )

    @staticmethod
    def _request_metadata(request: ProcessTranscriptRequest) -> Dict[str, Any]:
        return {
            "outputSchema": request.output_schema,
            "meetingMetadata": request.meeting_metadata.model_dump(mode="json", by_alias=True),
            "hasClientContext": bool(request.client_context_summary),
        }

    async def _record_evaluation(
        self,
        context: CallContext,
        response: TransportResponse,
        extracted: Any,
        validation: ValidationOutcome,
    ) -> None:
        await record_safely(self.recorder, context.to_attempt(
            stage=AttemptStage.evaluation,
            raw_response=response.text,
            extracted_json=validation.data if validation.valid else extracted,
            is_valid=validation.valid,
            validation_errors=None if validation.valid else list(validation.errors),
            is_final=validation.valid,
            usage_metadata=response.usage_metadata,
            processed_at=datetime.now(timezone.utc),
        ))

    def _accept(
        self,
        request: ProcessTranscriptRequest,
        context: CallContext,
        validation: ValidationOutcome,
    ) -> ProcessTranscriptResult:
        logger.info(
            f"Artifact generated: request_id={request.request_id}, "
            f"attempt={context.attempt_number}, repaired={context.is_repair_attempt}"
        )
        return ProcessTranscriptResult.success(validation.data)

    @staticmethod
    def _schema_validation_failed(errors: List[str]) -> ProcessTranscriptResult:
        details: Dict[str, Any] = {"validationErrors": list(errors)}
        return ProcessTranscriptResult.failure(LLMErrorCode.SCHEMA_VALIDATION_FAILED, details=details)
