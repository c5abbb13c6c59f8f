"""
app.py — ASPIC+ Argumentation API

The pipeline behind every endpoint:
  Stage 1: Parse     — six text fields → validated KnowledgeBase
  Stage 2: Construct — closure of structured arguments
  Stage 3: Attack    — rebut / undermine / undercut, filtered into defeats
  Stage 4: Solve     — extensions of the abstract framework

Endpoints:
  POST /validate  per-field grammar check, any subset of fields
  POST /build     parsed theory
  POST /generate  theory + arguments + defeats
  POST /solve     extensions under the requested semantics
  POST /iccma     framework in ICCMA text format

Usage:
  uvicorn aspic_server.app:app --port 8787
  # or: python -m aspic_server.app
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from aspic_server import __version__
from aspic_server.argumentation import (
    ArgumentationEngine,
    ArgumentationFramework,
    ConstructionLimits,
    LinkPrinciple,
    PreferenceConfig,
    Semantics,
    SetOrdering,
    build_arguments,
    compute_defeats,
    serialize_iccma,
    to_abstract_framework,
)
from aspic_server.errors import (
    ConstructionOverflow,
    MalformedKnowledgeBase,
    SearchOverflow,
    UnsatisfiableFramework,
)
from aspic_server.models import (
    ErrorResponse,
    GenerateResponse,
    HealthResponse,
    PartialSpecification,
    SolveRequest,
    SolveResponse,
    Specification,
    TheoryResponse,
    ValidationResponse,
)
from aspic_server.theory import KnowledgeBase, parse_knowledge_base, validate_fields

VERSION = __version__

# ── Configuration ────────────────────────────────────────────────

MAX_ARGUMENTS = int(os.environ.get("ASPIC_MAX_ARGUMENTS", "10000"))
MAX_DEPTH = int(os.environ.get("ASPIC_MAX_DEPTH", "50"))
MAX_SEARCH_STATES = int(os.environ.get("ASPIC_MAX_SEARCH_STATES", "100000"))
LINK_PRINCIPLE = LinkPrinciple(os.environ.get("ASPIC_LINK_PRINCIPLE", "weakest"))
SET_ORDERING = SetOrdering(os.environ.get("ASPIC_SET_ORDERING", "elitist"))
LOG_LEVEL = os.environ.get("ASPIC_LOG_LEVEL", "INFO").upper()
HOST = os.environ.get("ASPIC_HOST", "0.0.0.0")
PORT = int(os.environ.get("ASPIC_PORT", "8787"))
SERVER_START_TIME = time.time()

# ── Logging ──────────────────────────────────────────────────────

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s │ %(name)-14s │ %(levelname)-7s │ %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("aspic.server")

LIMITS = ConstructionLimits(max_arguments=MAX_ARGUMENTS, max_depth=MAX_DEPTH)


# ── FastAPI App ──────────────────────────────────────────────────

app = FastAPI(
    title="ASPIC+ Argumentation API",
    description="Structured argumentation: build arguments, compute defeats, solve extensions.",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# ── Error Handlers ───────────────────────────────────────────────

@app.exception_handler(MalformedKnowledgeBase)
async def malformed_handler(request: Request, exc: MalformedKnowledgeBase):
    log.info(f"{request.url.path} | rejected input: {sorted(exc.errors)}")
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="malformed_knowledge_base",
            detail=str(exc),
            field_errors=exc.errors,
        ).model_dump(),
    )


@app.exception_handler(ConstructionOverflow)
@app.exception_handler(SearchOverflow)
async def overflow_handler(request: Request, exc: Exception):
    log.warning(f"{request.url.path} | budget exceeded: {exc}")
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error="budget_exceeded", detail=str(exc)).model_dump(),
    )


@app.exception_handler(UnsatisfiableFramework)
async def unsatisfiable_handler(request: Request, exc: UnsatisfiableFramework):
    log.error(f"{request.url.path} | framework encoding broken: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="unsatisfiable_framework", detail=str(exc)).model_dump(),
    )


# ── Pipeline ─────────────────────────────────────────────────────

def _preferences(
    link: Optional[LinkPrinciple] = None,
    ordering: Optional[SetOrdering] = None,
) -> PreferenceConfig:
    return PreferenceConfig(link=link or LINK_PRINCIPLE, ordering=ordering or SET_ORDERING)


def _build(
    spec: Specification,
    config: PreferenceConfig,
) -> tuple[KnowledgeBase, ArgumentationFramework]:
    kb = parse_knowledge_base(**spec.as_fields())
    arguments = build_arguments(kb, LIMITS)
    defeats = compute_defeats(arguments, kb, config)
    return kb, to_abstract_framework(arguments, defeats)


# ═════════════════════════════════════════════════════════════════
#  ENDPOINTS
# ═════════════════════════════════════════════════════════════════


@app.get("/v1/health", response_model=HealthResponse, tags=["System"])
def health():
    return HealthResponse(
        status="ok",
        version=VERSION,
        uptime_seconds=int(time.time() - SERVER_START_TIME),
    )


@app.post(
    "/validate",
    response_model=ValidationResponse,
    responses={400: {"model": ValidationResponse}},
    tags=["Theory"],
)
def validate(spec: PartialSpecification):
    """
    Check each supplied field against its grammar. Fields are checked
    independently, so one broken field never hides another.
    """
    errors = validate_fields(**spec.model_dump())
    if errors:
        log.info(f"Validate | invalid fields: {sorted(errors)}")
        return JSONResponse(
            status_code=400,
            content=ValidationResponse(valid=False, errors=errors).model_dump(),
        )
    return ValidationResponse(valid=True)


@app.post("/build", response_model=TheoryResponse, tags=["Theory"])
def build(spec: Specification):
    kb = parse_knowledge_base(**spec.as_fields())
    return TheoryResponse(theory=kb.to_dict())


@app.post("/generate", response_model=GenerateResponse, tags=["Framework"])
def generate(spec: Specification):
    kb, af = _build(spec, _preferences())
    log.info(f"Generate | {af.size} arguments, {len(af.attacks)} defeats")
    return GenerateResponse(theory=kb.to_dict(), framework=af.to_dict())


@app.post("/solve", response_model=SolveResponse, tags=["Framework"])
def solve(req: SolveRequest):
    """
    Build the framework and compute its extensions. Preferred semantics
    unless `options.semantics` says otherwise.
    """
    options = req.options
    config = _preferences(
        options.link_principle if options else None,
        options.set_ordering if options else None,
    )
    semantics = options.semantics if options else Semantics.PREFERRED
    _, af = _build(req, config)

    engine = ArgumentationEngine(max_states=MAX_SEARCH_STATES)
    result = engine.resolve(af, semantics)
    summary = result.to_dict()

    return SolveResponse(
        semantics=result.semantics,
        link_principle=config.link,
        set_ordering=config.ordering,
        num_arguments=af.size,
        num_defeats=len(af.attacks),
        arguments=[a.to_dict() for a in af.arguments],
        extensions=summary["extensions"],
        skeptically_accepted=summary["skeptically_accepted"],
        credulously_accepted=summary["credulously_accepted"],
        resolution_time_ms=result.resolution_time_ms,
    )


@app.post("/iccma", response_class=PlainTextResponse, tags=["Framework"])
def iccma(spec: Specification):
    _, af = _build(spec, _preferences())
    return PlainTextResponse(serialize_iccma(af))


# ── Entrypoint ───────────────────────────────────────────────────

def main():
    uvicorn.run(
        "aspic_server.app:app",
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
