"""Document uploads to Zoho WorkDrive."""

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from amoria_admin import config
from amoria_admin.dependencies import get_zoho_client
from amoria_admin.errors import error_response
from amoria_admin.routes._message_helpers import success_response
from amoria_admin.storage.zoho import ZohoWorkDriveClient, delete_document, upload_document

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/documents")
def upload(
    file: UploadFile = File(...),
    title: str = Form(...),
    client: ZohoWorkDriveClient = Depends(get_zoho_client),
) -> JSONResponse:
    """
    Upload a file under a sanitised version of ``title``.

    Returns:
        JSONResponse: ``{success, url}`` where ``url`` is the public download
        link, or the WorkDrive permalink when no link could be created
    """
    if not title.strip():
        return error_response(400, "Title is required")

    content = file.file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        logger.warning("document_too_large", file_name=file.filename, limit=config.MAX_UPLOAD_BYTES)
        return error_response(
            400, f"File size too large. Maximum size is {config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
        )

    try:
        url = upload_document(client, content, file.filename or "", title)
    except Exception as e:
        logger.exception("document_upload_failed", file_name=file.filename, error=str(e))
        return error_response(500, "Failed to upload document", e)

    logger.info("document_uploaded", title=title, size=len(content))
    return success_response(url=url)


@router.delete("/documents/{file_id}")
def delete(
    file_id: str,
    client: ZohoWorkDriveClient = Depends(get_zoho_client),
) -> JSONResponse:
    try:
        delete_document(client, file_id)
    except Exception as e:
        logger.exception("document_delete_failed", file_id=file_id, error=str(e))
        return error_response(500, "Failed to delete document", e)

    return success_response("Document deleted successfully")
