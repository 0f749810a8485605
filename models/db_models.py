"""SQLModel table definitions mirroring the existing Postgres schema.

These models use the Mirror Pattern - they match the existing llm_interactions
table without running migrations. They are used for persisting the audit trail
of model calls made while generating meeting artifacts.
"""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, Text, DateTime, JSON
from typing import Any, Optional
from datetime import datetime, timezone
from uuid import UUID, uuid4

from models.llm_interaction import Attempt


class LLMInteractionModel(SQLModel, table=True):
    """Mirror of llm_interactions table.

    One row per recorded Attempt. Rows are inserted once and never updated.
    """
    __tablename__ = "llm_interactions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    request_id: Optional[str] = Field(default=None, sa_column=Column(Text, name="request_id", index=True))

    attempt_number: int = Field(sa_column_kwargs={"name": "attempt_number"})
    retry_index: int = Field(default=1, sa_column_kwargs={"name": "retry_index"})
    stage: str = Field(default="transport", sa_column=Column(Text, name="stage", nullable=False))
    is_repair_attempt: bool = Field(default=False, sa_column_kwargs={"name": "is_repair_attempt"})

    # Request
    request_metadata: Optional[Any] = Field(default=None, sa_column=Column(JSON, name="request_metadata"))
    system_prompt: Optional[str] = Field(default=None, sa_column=Column(Text, name="system_prompt"))
    user_prompt: Optional[str] = Field(default=None, sa_column=Column(Text, name="user_prompt"))
    model: Optional[str] = Field(default=None, sa_column=Column(Text, name="model"))
    temperature: Optional[float] = Field(default=None)
    max_tokens: Optional[int] = Field(default=None, sa_column_kwargs={"name": "max_tokens"})

    # Response
    raw_response: Optional[str] = Field(default=None, sa_column=Column(Text, name="raw_response"))
    extracted_json: Optional[Any] = Field(default=None, sa_column=Column(JSON, name="extracted_json"))
    api_response_metadata: Optional[Any] = Field(
        default=None,
        sa_column=Column(JSON, name="api_response_metadata")
    )

    # Evaluation
    is_valid: Optional[bool] = Field(default=None, sa_column_kwargs={"name": "is_valid"})
    validation_errors: Optional[Any] = Field(default=None, sa_column=Column(JSON, name="validation_errors"))
    is_final: bool = Field(default=False, sa_column_kwargs={"name": "is_final"})

    # Failure
    error_code: Optional[str] = Field(default=None, sa_column=Column(Text, name="error_code"))
    error_message: Optional[str] = Field(default=None, sa_column=Column(Text, name="error_message"))
    error_details: Optional[Any] = Field(default=None, sa_column=Column(JSON, name="error_details"))

    requested_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), name="requested_at", nullable=False)
    )
    responded_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), name="responded_at", nullable=True)
    )
    processed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), name="processed_at", nullable=True)
    )

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> "LLMInteractionModel":
        """Map an Attempt onto a new row."""
        return cls(
            request_id=attempt.request_id,
            attempt_number=attempt.attempt_number,
            retry_index=attempt.retry_index,
            stage=attempt.stage.value,
            is_repair_attempt=attempt.is_repair_attempt,
            system_prompt=attempt.system_prompt,
            user_prompt=attempt.user_prompt,
            model=attempt.model,
            temperature=attempt.temperature,
            max_tokens=attempt.max_tokens,
            raw_response=attempt.raw_response,
            extracted_json=attempt.extracted_json,
            api_response_metadata=attempt.usage_metadata,
            is_valid=attempt.is_valid,
            validation_errors=attempt.validation_errors,
            is_final=attempt.is_final,
            error_code=attempt.error_code,
            error_message=attempt.error_message,
            error_details=attempt.error_details,
            request_metadata=attempt.request_metadata,
            requested_at=attempt.requested_at,
            responded_at=attempt.responded_at,
            processed_at=attempt.processed_at,
        )
