"""
Wordings API Router

GET  /wordings         - reference wordings (insurer order)
POST /wordings/upload  - register a wording (or forward to the intake webhook)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from api.dependencies import get_store
from services.ingestion.upload import WebhookError, ingest_wording_upload
from services.storage.records import PolicyRepository

router = APIRouter(prefix="/wordings", tags=["wordings"])


@router.get("")
def list_wordings(store: PolicyRepository = Depends(get_store)) -> dict:
    """id, insurer, wording_version, file_name per wording"""
    return {"wordings": [w.to_dict() for w in store.list_wordings()]}


@router.post("/upload")
def upload_wording(
    file: UploadFile = File(...),
    insurer: str | None = Form(None),
    wording_version: str | None = Form(None),
    store: PolicyRepository = Depends(get_store),
) -> dict:
    """
    Upload a reference wording

    - **file**: wording PDF or text
    - **insurer**: insurer name as it should appear
    - **wording_version**: wording version / reference

    Errors:
        - 400: missing file / insurer / version
        - 422: unreadable document
        - 502: intake webhook failure
    """
    data = file.file.read()
    try:
        wording = ingest_wording_upload(
            store,
            insurer=insurer,
            wording_version=wording_version,
            file_name=file.filename or "wording.pdf",
            data=data,
            content_type=file.content_type,
        )
    except WebhookError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if wording is None:
        return {"success": True, "forwarded": True}
    return {"success": True, "forwarded": False, "wording": wording.to_dict()}
