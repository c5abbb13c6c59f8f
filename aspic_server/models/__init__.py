"""
models — API Request/Response Schemas

These Pydantic models define the HTTP contract of the ASPIC+ service.
The six text fields (axioms, premises, inference_rules, contraries,
rule_preferences, knowledge_preferences) are the only input shape and
must stay compatible with existing clients.
"""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from aspic_server.argumentation import LinkPrinciple, Semantics, SetOrdering


def new_request_id() -> str:
    return f"asp_req_{uuid.uuid4().hex[:8]}"


# ── Request Models ───────────────────────────────────────────────

class PartialSpecification(BaseModel):
    """Any subset of the six fields; used by /validate."""
    axioms: Optional[str] = None
    premises: Optional[str] = None
    inference_rules: Optional[str] = None
    contraries: Optional[str] = None
    rule_preferences: Optional[str] = None
    knowledge_preferences: Optional[str] = None


class Specification(BaseModel):
    """A complete knowledge base in textual form."""
    axioms: str = Field(..., examples=["p"])
    premises: str = Field(..., examples=["a; b"])
    inference_rules: str = Field(..., examples=["[r1] a => c\np -> q"])
    contraries: str = Field(..., examples=["a ~ b"])
    rule_preferences: str = Field(..., examples=[""])
    knowledge_preferences: str = Field(..., examples=["a < b"])

    def as_fields(self) -> dict[str, str]:
        return {
            "axioms": self.axioms,
            "premises": self.premises,
            "knowledge_preferences": self.knowledge_preferences,
            "inference_rules": self.inference_rules,
            "rule_preferences": self.rule_preferences,
            "contraries": self.contraries,
        }


class SolveOptions(BaseModel):
    semantics: Semantics = Semantics.PREFERRED
    link_principle: Optional[LinkPrinciple] = None
    set_ordering: Optional[SetOrdering] = None


class SolveRequest(Specification):
    options: Optional[SolveOptions] = None


# ── Response Models ──────────────────────────────────────────────

class ValidationResponse(BaseModel):
    valid: bool = True
    errors: dict[str, str] = Field(default_factory=dict)


class TheoryResponse(BaseModel):
    request_id: str = Field(default_factory=new_request_id)
    theory: dict


class GenerateResponse(BaseModel):
    request_id: str = Field(default_factory=new_request_id)
    theory: dict
    framework: dict


class SolveResponse(BaseModel):
    request_id: str = Field(default_factory=new_request_id)
    semantics: Semantics
    link_principle: LinkPrinciple
    set_ordering: SetOrdering
    num_arguments: int = 0
    num_defeats: int = 0
    arguments: list[dict] = Field(default_factory=list)
    extensions: list[list[str]] = Field(default_factory=list)
    skeptically_accepted: list[str] = Field(default_factory=list)
    credulously_accepted: list[str] = Field(default_factory=list)
    resolution_time_ms: float = 0.0


class ErrorResponse(BaseModel):
    error: str
    detail: str = ""
    field_errors: dict[str, str] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "1.0.0"
    uptime_seconds: int = 0
