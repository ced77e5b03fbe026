"""
Pydantic schemas for the Statecheck API.
"""
from typing import Optional, Any
from pydantic import BaseModel, Field


# ============================================================
# COMPARISON SCHEMAS
# ============================================================

class ComparisonRequest(BaseModel):
    """Request to compare an observed configuration with a declared one."""
    observed: dict = Field(default_factory=dict)
    declared: dict
    kinds: dict[str, str] = Field(default_factory=dict)
    keys_to_check: list[str] = Field(default_factory=list)
    # When set, only these declared keys are visible (filtered parameter bag)
    allowed_keys: Optional[list[str]] = None


class DiagnosticSchema(BaseModel):
    field: str
    reason: str
    kind: str
    observed: Optional[Any] = None
    declared: Optional[Any] = None
    message: str
    signature: str


class ComparisonResponse(BaseModel):
    in_desired_state: bool
    checked_keys: list[str]
    diagnostic_count: int
    diagnostics: list[DiagnosticSchema]


# ============================================================
# FLEET SCHEMAS
# ============================================================

class FleetComparisonRequest(BaseModel):
    """Compare several nodes against one declared configuration."""
    nodes: dict[str, dict]
    declared: dict
    kinds: dict[str, str] = Field(default_factory=dict)
    keys_to_check: list[str] = Field(default_factory=list)


class NodeVerdict(BaseModel):
    node: str
    in_desired_state: bool
    diagnostic_count: int


class DriftGroup(BaseModel):
    diagnostic: DiagnosticSchema
    nodes: list[str]


class FleetComparisonResponse(BaseModel):
    compliant_nodes: int
    drifted_nodes: int
    verdicts: list[NodeVerdict]
    drift: list[DriftGroup]
