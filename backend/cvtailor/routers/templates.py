"""
Templates Router - template upload, analysis and filling
"""
import json
import logging
import os
import time
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..exceptions import CVTailorError, ProviderError, TemplateStructureError
from ..models import CVTemplate, TemplateFileType, TransactionType, User
from ..schemas.template import (
    DocxPlaceholder, FillRequest, PDFTemplateField,
    TemplateFieldsUpdate, TemplateResponse
)
from ..services.ai_providers import resolve_provider
from ..services.auth import get_current_user
from ..services.credits import deduct_credit, get_balance
from ..services.docx import analyze_docx_template, estimate_docx_page_count, fill_docx_template
from ..services.docx.convert import PDF_MEDIA_TYPE, to_output_format
from ..services.pdf_filler import detect_form_fields, fill_pdf_template, get_pdf_page_count
from ..services.storage import StorageError, delete_file, download_file, upload_file

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/templates", tags=["Templates"])

MAX_TEMPLATES_PER_USER = 10

SUPPORTED_TYPES = {
    "application/pdf": TemplateFileType.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": TemplateFileType.DOCX,
}
SUPPORTED_EXTENSIONS = {".pdf": TemplateFileType.PDF, ".docx": TemplateFileType.DOCX}


# ============================================================================
# Helper Functions
# ============================================================================

async def get_user_template(db: AsyncSession, user_id: str, template_id: str) -> CVTemplate:
    result = await db.execute(
        select(CVTemplate).where(
            CVTemplate.id == template_id,
            CVTemplate.user_id == user_id
        )
    )
    template = result.scalar_one_or_none()
    if not template:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template


def template_to_response(template: CVTemplate) -> dict:
    return TemplateResponse(
        id=template.id,
        name=template.name,
        file_name=template.file_name,
        file_type=template.file_type.value,
        storage_url=template.storage_url,
        page_count=template.page_count,
        fields=template.fields or [],
        placeholders=template.placeholders or [],
        auto_analyzed=template.auto_analyzed,
        created_at=template.created_at,
        updated_at=template.updated_at,
    ).to_wire()


def detect_file_type(file: UploadFile) -> TemplateFileType:
    file_name = (file.filename or "").lower()
    if file.content_type == "application/msword" or file_name.endswith(".doc"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Old Word format (.doc) is not supported. Please convert to .docx (Word 2007+) first."
        )
    file_type = SUPPORTED_TYPES.get(file.content_type)
    if file_type is None:
        file_type = SUPPORTED_EXTENSIONS.get(os.path.splitext(file_name)[1])
    if file_type is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF and DOCX files are allowed"
        )
    return file_type


def output_file_name(file_name: str, extension: str) -> str:
    base, _ = os.path.splitext(file_name)
    return f"filled-{base}.{extension}"


# ============================================================================
# Template Endpoints
# ============================================================================

@router.get("")
async def list_templates(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(CVTemplate)
        .where(CVTemplate.user_id == current_user.id)
        .order_by(CVTemplate.created_at.desc())
    )
    return {
        "success": True,
        "templates": [template_to_response(t) for t in result.scalars().all()],
    }


@router.post("")
async def upload_template(
    file: UploadFile = File(...),
    name: str = Form(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Upload a DOCX or PDF template. DOCX files are analyzed for placeholders
    right away; PDF fields are configured afterwards.
    """
    count = (await db.execute(
        select(func.count()).select_from(CVTemplate).where(CVTemplate.user_id == current_user.id)
    )).scalar_one()
    if count >= MAX_TEMPLATES_PER_USER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum {MAX_TEMPLATES_PER_USER} templates allowed"
        )

    if not name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File and name are required")

    file_type = detect_file_type(file)
    content = await file.read()
    if len(content) > settings.max_template_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size must be less than {settings.max_template_size_mb}MB"
        )

    placeholders: List[DocxPlaceholder] = []
    if file_type == TemplateFileType.DOCX:
        try:
            _, placeholders = analyze_docx_template(content)
            page_count = estimate_docx_page_count(content)
        except TemplateStructureError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid DOCX file: {e.message}"
            )
    else:
        try:
            page_count = get_pdf_page_count(content)
        except TemplateStructureError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid PDF file")

    file_name = os.path.basename(file.filename or f"template.{file_type.value}")
    storage_path = f"templates/{current_user.id}/{int(time.time() * 1000)}-{file_name}"
    try:
        storage_url = await upload_file(content, storage_path, file.content_type or "application/octet-stream")
    except StorageError as e:
        logger.error(f"Template upload failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload template"
        )

    template = CVTemplate(
        user_id=current_user.id,
        name=name.strip(),
        file_name=file_name,
        file_type=file_type,
        storage_url=storage_url,
        page_count=page_count,
        fields=[],
        placeholders=[p.to_wire() for p in placeholders],
        auto_analyzed=len(placeholders) > 0,
    )
    db.add(template)
    await db.flush()
    await db.refresh(template)

    logger.info(f"Uploaded {file_type.value} template {template.id} with {len(placeholders)} placeholder(s)")
    return {"success": True, "template": template_to_response(template)}


@router.get("/{template_id}")
async def get_template(
    template_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    template = await get_user_template(db, current_user.id, template_id)
    return {"success": True, "template": template_to_response(template)}


@router.put("/{template_id}/fields")
async def update_template_fields(
    template_id: str,
    data: TemplateFieldsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Store the positioned fields of a PDF template."""
    template = await get_user_template(db, current_user.id, template_id)
    template.fields = [f.to_wire() for f in data.fields]
    await db.flush()
    await db.refresh(template)
    return {"success": True, "template": template_to_response(template)}


@router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    template = await get_user_template(db, current_user.id, template_id)
    await delete_file(template.storage_url)
    await db.delete(template)
    await db.flush()
    return {"success": True}


@router.post("/{template_id}/analyze")
async def analyze_template(
    template_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    template = await get_user_template(db, current_user.id, template_id)

    try:
        content = await download_file(template.storage_url)
    except StorageError as e:
        logger.error(f"Template download failed: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template file not found")

    if template.file_type == TemplateFileType.PDF:
        form_fields = detect_form_fields(content)
        template.page_count = get_pdf_page_count(content)
        await db.flush()
        return {"success": True, "formFields": form_fields, "pageCount": template.page_count}

    _, placeholders = analyze_docx_template(content)
    template.placeholders = [p.to_wire() for p in placeholders]
    template.auto_analyzed = len(placeholders) > 0
    await db.flush()
    await db.refresh(template)
    return {
        "success": True,
        "placeholders": template.placeholders,
        "template": template_to_response(template),
    }


@router.post("/{template_id}/fill")
async def fill_template(
    template_id: str,
    data: FillRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Fill a template with profile data and return the file. PDF templates use
    their positioned fields; DOCX templates use placeholders or, without
    them, the AI segment pipeline. Costs one credit.
    """
    template = await get_user_template(db, current_user.id, template_id)

    if template.file_type == TemplateFileType.PDF and not template.fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Template has no fields configured. Please configure fields first."
        )
    if data.profile_data is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Profile data is required")

    free, purchased = await get_balance(db, current_user.id)
    if free + purchased < 1:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="Insufficient credits. You need at least 1 credit to fill a template."
        )

    try:
        template_bytes = await download_file(template.storage_url)
    except StorageError as e:
        logger.error(f"Template download failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch template file"
        )

    warnings: List[str] = []
    mode = "positioned"
    try:
        if template.file_type == TemplateFileType.PDF:
            fields = [PDFTemplateField.model_validate(f) for f in template.fields]
            content = fill_pdf_template(template_bytes, fields, data.profile_data, data.custom_values)
            media_type, extension = PDF_MEDIA_TYPE, "pdf"
        else:
            try:
                credentials = resolve_provider(current_user)
            except ProviderError as e:
                if e.status_code != status.HTTP_400_BAD_REQUEST:
                    raise
                credentials = None

            placeholders = [DocxPlaceholder.model_validate(p) for p in template.placeholders or []]
            result = await fill_docx_template(
                template_bytes, placeholders, data.profile_data, credentials,
                job=data.job_vacancy, language=data.language,
                description_format=data.description_format,
                custom_instructions=data.custom_instructions,
                custom_values=data.custom_values,
                fit_analysis=data.fit_analysis,
            )
            warnings = result.warnings
            mode = result.mode
            content, media_type, extension = await to_output_format(result.content, data.output_format)
    except (HTTPException, CVTailorError):
        raise
    except Exception as e:
        logger.exception(f"Failed to fill template {template_id}")
        raise CVTailorError("Failed to fill template", details=str(e))

    await deduct_credit(
        db, current_user.id, TransactionType.CV_GENERATION,
        f"Template filled: {template.name}",
    )

    headers = {
        "Content-Disposition": f'attachment; filename="{output_file_name(template.file_name, extension)}"',
        "X-Fill-Mode": mode,
    }
    if warnings:
        headers["X-Fill-Warnings"] = json.dumps(warnings)
    return Response(content=content, media_type=media_type, headers=headers)
