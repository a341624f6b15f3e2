"""
CV Router - tailored CV generation, vacancy parsing, fit analysis, motivation
letters and the design-token style system
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import CVTailorError
from ..models import CVStatus, GeneratedCV, TransactionType, User
from ..schemas.cv import (
    FitAnalysis,
    FitAnalysisRequest,
    GenerateCVRequest,
    GenerateCVResponse,
    GeneratedCVContent,
    GeneratedMotivationLetter,
    MotivationLetterSections,
    MotivationRequest,
    ParseJobRequest,
)
from ..schemas.profile import JobVacancy, ParsedLinkedIn
from ..schemas.design_tokens import StyleRequest
from ..services.ai_providers import generate_json, resolve_provider
from ..services.auth import get_current_user
from ..services.credits import deduct_credit, get_balance
from ..services.prompts import (
    build_cv_prompt,
    build_fit_analysis_prompt,
    build_job_parse_prompt,
    build_motivation_prompt,
    format_motivation_letter,
)
from ..services.retry import with_retry
from ..services.styling import (
    THEME_DEFAULTS,
    get_font_urls,
    style_config_to_tokens,
    theme_tokens,
    tokens_to_css,
    tokens_to_style_config,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cv", tags=["CV"])

MIN_VACANCY_LENGTH = 50


def ai_error_to_http(error: Exception) -> HTTPException:
    """Map a provider failure onto the status the client acts on."""
    message = error.message if isinstance(error, CVTailorError) else str(error)
    if "API key" in message:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid API key. Please check your settings."
        )
    lowered = message.lower()
    if "rate limit" in lowered or "quota" in lowered:
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later."
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.post("/generate", response_model=GenerateCVResponse, response_model_by_alias=True)
async def generate_cv(
    data: GenerateCVRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if data.linked_in_data is None or not data.linked_in_data.full_name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="LinkedIn data is required")

    credentials = resolve_provider(current_user)

    style_config = data.style_config
    if style_config is None and data.design_tokens is not None:
        style_config = tokens_to_style_config(data.design_tokens)
    description_format = (
        data.design_tokens.experience_description_format if data.design_tokens else "bullets"
    )

    system, prompt = build_cv_prompt(
        data.linked_in_data, data.job_vacancy, style_config,
        language=data.language, description_format=description_format,
    )

    try:
        raw, usage = await with_retry(
            lambda: generate_json(credentials, system, prompt, temperature=0.7)
        )
        content = GeneratedCVContent.model_validate(raw)
    except Exception as e:
        logger.exception("CV generation failed")
        raise ai_error_to_http(e)

    cv = GeneratedCV(
        user_id=current_user.id,
        linkedin_data=data.linked_in_data.to_wire(),
        job_vacancy=data.job_vacancy.to_wire() if data.job_vacancy else None,
        style_config=style_config.to_wire() if style_config else None,
        design_tokens=data.design_tokens.to_wire() if data.design_tokens else None,
        generated_content=content.to_wire(),
        llm_provider=credentials.provider,
        llm_model=credentials.model,
        status=CVStatus.GENERATED,
    )
    db.add(cv)
    await db.flush()

    logger.info(
        f"Generated CV {cv.id} for user {current_user.id} "
        f"({usage.prompt_tokens}+{usage.completion_tokens} tokens)"
    )
    return GenerateCVResponse(cv_id=cv.id, content=content, usage=usage)


@router.post("/job/parse")
async def parse_job(
    data: ParseJobRequest,
    current_user: User = Depends(get_current_user)
):
    """Structure a pasted vacancy text into a job vacancy."""
    if len(data.raw_text.strip()) < MIN_VACANCY_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Please paste a complete job vacancy (at least {MIN_VACANCY_LENGTH} characters)"
        )

    credentials = resolve_provider(current_user)
    system, prompt = build_job_parse_prompt(data.raw_text)

    try:
        raw, usage = await with_retry(
            lambda: generate_json(credentials, system, prompt, temperature=0.3)
        )
        vacancy = JobVacancy.model_validate({**raw, "rawText": data.raw_text})
    except Exception as e:
        logger.exception("Job vacancy parsing failed")
        raise ai_error_to_http(e)

    logger.info(f"Parsed vacancy \"{vacancy.title}\" for user {current_user.id}")
    return {"success": True, "data": vacancy.to_wire(), "usage": usage.to_wire()}


@router.post("/fit-analysis")
async def analyze_fit(
    data: FitAnalysisRequest,
    current_user: User = Depends(get_current_user)
):
    """Score how well a profile matches a vacancy, with gaps, strengths and advice."""
    if data.linked_in_data is None or not data.linked_in_data.full_name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Profile data is required")
    if data.job_vacancy is None or not data.job_vacancy.title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job vacancy is required")

    credentials = resolve_provider(current_user)
    system, prompt = build_fit_analysis_prompt(data.linked_in_data, data.job_vacancy)

    try:
        raw, usage = await with_retry(
            lambda: generate_json(credentials, system, prompt, temperature=0.3)
        )
        analysis = FitAnalysis.model_validate(raw)
    except Exception as e:
        logger.exception("Fit analysis failed")
        raise ai_error_to_http(e)

    logger.info(
        f"Fit analysis for user {current_user.id}: {analysis.verdict} ({analysis.overall_score:.0f})"
    )
    return {"success": True, "analysis": analysis.to_wire(), "usage": usage.to_wire()}


async def get_user_cv(db: AsyncSession, user_id: str, cv_id: str) -> GeneratedCV:
    cv = (await db.execute(
        select(GeneratedCV).where(GeneratedCV.id == cv_id, GeneratedCV.user_id == user_id)
    )).scalar_one_or_none()
    if cv is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="CV not found")
    return cv


@router.post("/{cv_id}/motivation")
async def generate_motivation_letter(
    cv_id: str,
    data: MotivationRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Write a motivation letter for a generated CV and its vacancy. The letter
    is stored on the CV. Costs one credit.
    """
    free, purchased = await get_balance(db, current_user.id)
    if free + purchased < 1:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="Insufficient credits. Please purchase more credits."
        )

    credentials = resolve_provider(current_user)
    cv = await get_user_cv(db, current_user.id, cv_id)
    if not cv.generated_content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CV content not generated yet. Generate CV first."
        )
    if not cv.job_vacancy:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CV has no job vacancy. A motivation letter needs a target job."
        )

    profile = ParsedLinkedIn.model_validate(cv.linkedin_data)
    job = JobVacancy.model_validate(cv.job_vacancy)
    content = GeneratedCVContent.model_validate(cv.generated_content)
    system, prompt = build_motivation_prompt(
        profile, job, content.summary, data.language, data.personal_motivation
    )

    try:
        raw, usage = await with_retry(
            lambda: generate_json(credentials, system, prompt, temperature=0.7)
        )
        sections = MotivationLetterSections.model_validate(raw)
    except Exception as e:
        logger.exception(f"Motivation letter generation failed for CV {cv_id}")
        raise ai_error_to_http(e)

    letter = GeneratedMotivationLetter(
        **sections.model_dump(),
        full_text=format_motivation_letter(
            sections, profile.full_name, job.title, job.company, data.language
        ),
    )

    await deduct_credit(
        db, current_user.id, TransactionType.MOTIVATION_LETTER,
        "Motivation letter generation", cv_id=cv.id,
    )
    cv.motivation_letter = letter.to_wire()
    await db.flush()

    logger.info(
        f"Generated motivation letter for CV {cv.id} "
        f"({usage.prompt_tokens}+{usage.completion_tokens} tokens)"
    )
    return {"success": True, "letter": letter.to_wire(), "usage": usage.to_wire()}


@router.get("/{cv_id}/motivation")
async def get_motivation_letter(
    cv_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cv = await get_user_cv(db, current_user.id, cv_id)
    return {"success": True, "letter": cv.motivation_letter}


@router.get("/themes")
async def list_themes():
    """Theme defaults with their CSS variable blocks and font stylesheets."""
    themes = []
    for theme_base in THEME_DEFAULTS:
        tokens = theme_tokens(theme_base)
        themes.append({
            "themeBase": theme_base,
            "tokens": tokens.to_wire(),
            "css": tokens_to_css(tokens),
            "fontUrls": get_font_urls(tokens.font_pairing),
        })
    return {"success": True, "themes": themes}


@router.post("/style")
async def convert_style(
    data: StyleRequest,
    current_user: User = Depends(get_current_user)
):
    """Design tokens to legacy style config and CSS, or a legacy config back to tokens."""
    if data.tokens is not None:
        return {
            "success": True,
            "styleConfig": tokens_to_style_config(data.tokens).to_wire(),
            "css": tokens_to_css(data.tokens),
            "fontUrls": get_font_urls(data.tokens.font_pairing),
        }
    if data.style_config is not None:
        tokens = style_config_to_tokens(data.style_config)
        return {
            "success": True,
            "tokens": tokens.to_wire(),
            "css": tokens_to_css(tokens),
        }
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Either tokens or styleConfig is required"
    )
