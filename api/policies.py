"""
Policies API Router

POST /policies/upload            - schedule upload + LLM extraction
GET  /policies/{id}              - policy record
POST /policies/{id}/extract      - insurer / wording_version extraction
POST /policies/{id}/match        - wording match (matched / no_match / ambiguous)
POST /policies/{id}/wording      - manual wording assignment
POST /policies/{id}/compare      - schedule vs wording analysis
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.dependencies import get_file_store, get_llm, get_store
from services.extraction.policy_extractor import FieldExtractionError, extract_policy_fields
from services.ingestion.upload import ingest_policy_upload
from services.llm.client import LLMCallError, LLMClient
from services.matching.matcher import Ambiguous, Matched, MatchInputError, NoMatch
from services.matching.service import WordingMatchService
from services.retrieval.compare_service import (
    CompareInputError,
    InvalidAnalysisError,
    compare_policy,
)
from services.storage.file_store import FileStore
from services.storage.records import (
    PolicyRepository,
    RecordNotFoundError,
    WordingAlreadyAssignedError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/policies", tags=["policies"])


class AssignWordingRequest(BaseModel):
    """Manual wording assignment"""
    wording_id: str = Field(..., min_length=1, description="policy_wording.id")


def _llm_error(e: LLMCallError) -> HTTPException:
    """LLM failure -> 502"""
    detail: dict = {"error": str(e), "error_code": e.error_code}
    if e.raw:
        detail["raw"] = e.raw[:2000]
    return HTTPException(status_code=502, detail=detail)


# =============================================================================
# Upload
# =============================================================================

@router.post("/upload")
async def upload_policy(
    file: UploadFile = File(...),
    customer_id: str = Form(...),
    wording_id: str | None = Form(None),
    store: PolicyRepository = Depends(get_store),
    file_store: FileStore = Depends(get_file_store),
    llm: LLMClient = Depends(get_llm),
) -> dict:
    """
    Upload a policy schedule

    - **file**: PDF or text schedule
    - **customer_id**: owning customer
    - **wording_id**: wording chosen by the uploader (optional)

    Errors:
        - 400: missing/invalid file
        - 404: customer or wording not found
        - 422: unreadable document
    """
    data = await file.read()
    try:
        result = await ingest_policy_upload(
            store,
            file_store,
            llm,
            customer_id=customer_id,
            file_name=file.filename or "upload.pdf",
            data=data,
            wording_id=wording_id or None,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=422, detail=str(e))

    extracted = result.extraction.model_dump() if result.extraction.kind == "structured" else None
    return {
        "success": True,
        "policy": result.policy.to_dict(),
        "extraction_kind": result.extraction.kind,
        "extracted": extracted,
    }


# =============================================================================
# Read
# =============================================================================

@router.get("/{policy_id}")
def get_policy(policy_id: str, store: PolicyRepository = Depends(get_store)) -> dict:
    policy = store.get_policy(policy_id)
    if policy is None:
        raise HTTPException(status_code=404, detail="Policy not found")
    return {"policy": policy.to_dict(include_text=True)}


# =============================================================================
# Extract
# =============================================================================

@router.post("/{policy_id}/extract")
async def extract_policy(
    policy_id: str,
    store: PolicyRepository = Depends(get_store),
    llm: LLMClient = Depends(get_llm),
) -> dict:
    """
    Extract insurer + wording_version from the stored schedule text

    Errors:
        - 400: policy has no extracted text
        - 404: policy not found
        - 422: LLM reply missing insurer / wording_version
        - 502: LLM failure
    """
    policy = store.get_policy(policy_id)
    if policy is None:
        raise HTTPException(status_code=404, detail="Policy not found")
    if not policy.ocr_text:
        raise HTTPException(status_code=400, detail="Policy has no ocr_text to extract from")

    try:
        fields = await extract_policy_fields(policy.ocr_text, llm)
    except LLMCallError as e:
        raise _llm_error(e)
    except FieldExtractionError as e:
        raise HTTPException(status_code=422, detail={"error": str(e), "parsed": e.parsed})

    updated = store.update_policy_fields(policy.id, fields.insurer, fields.wording_version)
    return {"success": True, "policy": updated.to_dict(), "extracted": fields.model_dump()}


# =============================================================================
# Match
# =============================================================================

@router.post("/{policy_id}/match")
def match_policy(policy_id: str, store: PolicyRepository = Depends(get_store)):
    """
    Match the policy to a reference wording

    Returns:
        200 matched, 404 no_match (with candidates), 409 ambiguous

    Errors:
        - 404: policy not found
        - 422: insurer / wording_version not extracted
    """
    service = WordingMatchService(store)
    try:
        result, policy = service.match_policy(policy_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Policy not found")
    except MatchInputError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if isinstance(result, Matched):
        return {**result.to_dict(), "success": True, "policy": policy.to_dict()}

    if isinstance(result, Ambiguous):
        return JSONResponse(
            status_code=409,
            content={"error": "Multiple wordings match this policy", **result.to_dict()},
        )

    if isinstance(result, NoMatch):
        return JSONResponse(
            status_code=404,
            content={"error": "No matching wording found", **result.to_dict()},
        )

    raise HTTPException(status_code=500, detail="Unexpected match result")


@router.post("/{policy_id}/wording")
def assign_wording(
    policy_id: str,
    request: AssignWordingRequest,
    store: PolicyRepository = Depends(get_store),
) -> dict:
    """
    Operator resolution after no_match / ambiguous

    Errors:
        - 404: policy or wording not found
        - 409: policy already matched
        - 422: insurer / wording_version not extracted
    """
    service = WordingMatchService(store)
    try:
        policy = service.assign_wording(policy_id, request.wording_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MatchInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except WordingAlreadyAssignedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"success": True, "policy": policy.to_dict()}


# =============================================================================
# Compare
# =============================================================================

@router.post("/{policy_id}/compare")
async def compare(
    policy_id: str,
    store: PolicyRepository = Depends(get_store),
    llm: LLMClient = Depends(get_llm),
):
    """
    Compare schedule against the matched wording

    Errors:
        - 400: no extracted text / no matched wording / wording text missing
        - 404: policy not found
        - 502: LLM failure or invalid analysis JSON
    """
    try:
        outcome = await compare_policy(store, llm, policy_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Policy not found")
    except CompareInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMCallError as e:
        raise _llm_error(e)
    except InvalidAnalysisError as e:
        logger.error(f"COMPARE: invalid analysis for {policy_id}: {e}")
        return JSONResponse(
            status_code=502,
            content={"error": "AI returned invalid JSON", "raw": (e.raw or "")[:2000]},
        )

    return jsonable_encoder({
        "success": True,
        "analysis": outcome.analysis.model_dump(),
        "analysis_id": outcome.record.id,
        "policy": outcome.policy.to_dict(),
    })
