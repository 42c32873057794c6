"""Pydantic schemas for audit endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class RunAuditRequest(BaseModel):
    project_id: Optional[str] = None


class AuditResult(BaseModel):
    """Full result of a completed audit."""
    success: bool = True
    audit_id: str
    project_id: str
    snapshot_id: Optional[str] = None
    status: str
    compliance_score: Optional[float] = None
    compliance_tier: Optional[str] = None
    scores: dict[str, Any] = Field(default_factory=dict)
    summary: dict[str, Any] = Field(default_factory=dict)
    detailed_findings: list[Any] = Field(default_factory=list)
    metrics: dict[str, Any] = Field(default_factory=dict)
    remediation_plan: list[Any] = Field(default_factory=list)
    component_analysis: dict[str, Any] = Field(default_factory=dict)
    actions_required: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, audit) -> "AuditResult":
        return cls(
            audit_id=audit.id,
            project_id=audit.project_id,
            snapshot_id=audit.snapshot_id,
            status=audit.status,
            compliance_score=audit.compliance_score,
            compliance_tier=audit.compliance_tier,
            scores=audit.scores or {},
            summary=audit.summary or {},
            detailed_findings=audit.detailed_findings or [],
            metrics=audit.metrics or {},
            remediation_plan=audit.remediation_plan or [],
            component_analysis=audit.component_analysis or {},
            actions_required=audit.actions_required or {},
            metadata=audit.metadata_ or {},
        )


class AuditHistoryItem(BaseModel):
    """One stored audit, in the same shape the orchestrator returns."""
    id: str
    snapshot_id: Optional[str] = None
    status: str
    compliance_score: Optional[float] = None
    compliance_tier: Optional[str] = None
    scores: dict[str, Any] = Field(default_factory=dict)
    summary: dict[str, Any] = Field(default_factory=dict)
    detailed_findings: list[Any] = Field(default_factory=list)
    metrics: dict[str, Any] = Field(default_factory=dict)
    remediation_plan: list[Any] = Field(default_factory=list)
    component_analysis: dict[str, Any] = Field(default_factory=dict)
    actions_required: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, audit) -> "AuditHistoryItem":
        return cls(
            id=audit.id,
            snapshot_id=audit.snapshot_id,
            status=audit.status,
            compliance_score=audit.compliance_score,
            compliance_tier=audit.compliance_tier,
            scores=audit.scores or {},
            summary=audit.summary or {},
            detailed_findings=audit.detailed_findings or [],
            metrics=audit.metrics or {},
            remediation_plan=audit.remediation_plan or [],
            component_analysis=audit.component_analysis or {},
            actions_required=audit.actions_required or {},
            metadata=audit.metadata_ or {},
            error=audit.error,
            created_at=audit.created_at,
            updated_at=audit.updated_at,
        )


class AuditHistoryResponse(BaseModel):
    success: bool = True
    project_id: str
    audits: list[AuditHistoryItem]
