"""
Profiles Router - saved profile CRUD, AI enrichment and LinkedIn export
"""
import logging
from typing import List, Tuple

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import SavedProfile, TransactionType, User
from ..schemas.profile import (
    EnrichmentResult, EnrichRequest,
    LinkedInExport, LinkedInExportRequest,
    ParsedLinkedIn,
    ProfileCreate, ProfileResponse, ProfileSummary, ProfileUpdate
)
from ..services.ai_providers import generate_json, resolve_provider
from ..services.auth import get_current_user
from ..services.credits import deduct_credit, get_balance
from ..services.prompts import build_enrichment_prompt, build_linkedin_export_prompt
from ..services.retry import with_retry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])


# ============================================================================
# Helper Functions
# ============================================================================

async def get_user_profile(db: AsyncSession, user_id: str, profile_id: str) -> SavedProfile:
    result = await db.execute(
        select(SavedProfile).where(
            SavedProfile.id == profile_id,
            SavedProfile.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def clear_other_defaults(db: AsyncSession, user_id: str, keep_id: str) -> None:
    await db.execute(
        update(SavedProfile)
        .where(SavedProfile.user_id == user_id, SavedProfile.id != keep_id)
        .values(is_default=False)
        .execution_options(synchronize_session=False)
    )


def profile_to_response(profile: SavedProfile) -> dict:
    return ProfileResponse(
        id=profile.id,
        name=profile.name,
        description=profile.description,
        parsed_data=ParsedLinkedIn.model_validate(profile.parsed_data),
        avatar_url=profile.avatar_url,
        is_default=profile.is_default,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    ).to_wire()


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def merge_enrichment(profile: ParsedLinkedIn, result: EnrichmentResult) -> Tuple[ParsedLinkedIn, List[str]]:
    """
    Merge AI additions into a copy of the profile. New experience, education
    and certifications go first; new skills are appended unless already present.
    """
    enriched = profile.model_copy(deep=True)
    changes: List[str] = []

    if result.headline and result.headline != profile.headline:
        enriched.headline = result.headline
        changes.append("Headline bijgewerkt")
    if result.about and result.about != profile.about:
        enriched.about = result.about
        changes.append("Over mij bijgewerkt")

    if result.new_experience:
        new_experience = [
            exp.model_copy(update={
                "location": _blank_to_none(exp.location),
                "end_date": _blank_to_none(exp.end_date),
                "description": _blank_to_none(exp.description),
            })
            for exp in result.new_experience
        ]
        enriched.experience = new_experience + enriched.experience
        changes.append(f"{len(new_experience)} werkervaring(en) toegevoegd")

    if result.new_education:
        new_education = [
            edu.model_copy(update={
                "degree": _blank_to_none(edu.degree),
                "field_of_study": _blank_to_none(edu.field_of_study),
                "start_year": _blank_to_none(edu.start_year),
                "end_year": _blank_to_none(edu.end_year),
            })
            for edu in result.new_education
        ]
        enriched.education = new_education + enriched.education
        changes.append(f"{len(new_education)} opleiding(en) toegevoegd")

    if result.new_skills:
        existing = {s.name.lower() for s in enriched.skills}
        added = []
        for skill in result.new_skills:
            key = skill.name.strip().lower()
            if key and key not in existing:
                existing.add(key)
                added.append(skill)
        if added:
            enriched.skills = enriched.skills + added
            noun = "vaardigheid" if len(added) == 1 else "vaardigheden"
            changes.append(f"{len(added)} {noun} toegevoegd")

    if result.new_certifications:
        new_certifications = [
            cert.model_copy(update={
                "issuer": _blank_to_none(cert.issuer),
                "issue_date": _blank_to_none(cert.issue_date),
            })
            for cert in result.new_certifications
        ]
        enriched.certifications = new_certifications + enriched.certifications
        noun = "certificaat" if len(new_certifications) == 1 else "certificaten"
        changes.append(f"{len(new_certifications)} {noun} toegevoegd")

    return enriched, changes or ["Geen wijzigingen gedetecteerd"]


# ============================================================================
# Profile Endpoints
# ============================================================================

@router.get("")
async def list_profiles(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(SavedProfile)
        .where(SavedProfile.user_id == current_user.id)
        .order_by(SavedProfile.updated_at.desc())
    )
    profiles = []
    for profile in result.scalars().all():
        data = profile.parsed_data or {}
        profiles.append(ProfileSummary(
            id=profile.id,
            name=profile.name,
            description=profile.description,
            headline=data.get("headline"),
            experience_count=len(data.get("experience") or []),
            avatar_url=profile.avatar_url,
            is_default=profile.is_default,
            updated_at=profile.updated_at,
        ).to_wire())
    return {"success": True, "profiles": profiles}


@router.post("")
async def create_profile(
    data: ProfileCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    profile = SavedProfile(
        user_id=current_user.id,
        name=data.name.strip(),
        description=data.description or None,
        parsed_data=data.parsed_data.to_wire(),
        avatar_url=data.avatar_url or None,
        is_default=data.is_default,
    )
    db.add(profile)
    await db.flush()

    if data.is_default:
        await clear_other_defaults(db, current_user.id, profile.id)

    await db.refresh(profile)
    logger.info(f"Created profile {profile.id} for user {current_user.id}")
    return {"success": True, "profile": profile_to_response(profile)}


@router.get("/{profile_id}")
async def get_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    profile = await get_user_profile(db, current_user.id, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return {"success": True, "profile": profile_to_response(profile)}


@router.put("/{profile_id}")
async def update_profile(
    profile_id: str,
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    profile = await get_user_profile(db, current_user.id, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    update_data = data.model_dump(exclude_unset=True)
    if "name" in update_data and data.name is not None:
        profile.name = data.name.strip()
    if "description" in update_data:
        profile.description = data.description or None
    if "parsed_data" in update_data and data.parsed_data is not None:
        profile.parsed_data = data.parsed_data.to_wire()
    if "avatar_url" in update_data:
        profile.avatar_url = data.avatar_url or None
    if "is_default" in update_data and data.is_default is not None:
        profile.is_default = data.is_default
        if data.is_default:
            await clear_other_defaults(db, current_user.id, profile.id)

    await db.flush()
    await db.refresh(profile)
    return {"success": True, "profile": profile_to_response(profile)}


@router.delete("/{profile_id}")
async def delete_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    profile = await get_user_profile(db, current_user.id, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    await db.delete(profile)
    await db.flush()
    return {"success": True}


# ============================================================================
# AI Endpoints
# ============================================================================

@router.post("/{profile_id}/enrich")
async def enrich_profile(
    profile_id: str,
    data: EnrichRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Let the model fold free-text information into the profile.
    The merged profile is returned for review and is not saved.
    """
    if not data.enrichment_text.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Voeg tekst toe om je profiel te verrijken"
        )

    profile = await get_user_profile(db, current_user.id, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    credentials = resolve_provider(
        current_user, "API key niet geconfigureerd. Voeg je API key toe in Instellingen."
    )
    parsed = ParsedLinkedIn.model_validate(profile.parsed_data)
    system, prompt = build_enrichment_prompt(parsed, data.enrichment_text, data.language)

    try:
        raw, usage = await with_retry(
            lambda: generate_json(credentials, system, prompt, temperature=0.5)
        )
        result = EnrichmentResult.model_validate(raw)
    except Exception as e:
        logger.exception(f"Profile enrichment failed for {profile_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Profiel verrijking mislukt: {str(e)}"
        )

    enriched, changes = merge_enrichment(parsed, result)
    return {
        "success": True,
        "enrichedProfile": enriched.to_wire(),
        "changes": changes,
        "changesSummary": result.changes_summary,
        "usage": usage.to_wire(),
    }


@router.post("/{profile_id}/linkedin-export")
async def linkedin_export(
    profile_id: str,
    data: LinkedInExportRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """LinkedIn-ready texts for a saved profile. Costs one credit."""
    free, purchased = await get_balance(db, current_user.id)
    if free + purchased < 1:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="Onvoldoende credits. Koop meer credits om door te gaan."
        )

    credentials = resolve_provider(
        current_user, "Geen API key geconfigureerd. Voeg je API key toe in Instellingen."
    )

    profile = await get_user_profile(db, current_user.id, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profiel niet gevonden")

    parsed = ParsedLinkedIn.model_validate(profile.parsed_data)
    system, prompt = build_linkedin_export_prompt(parsed, data.language)

    try:
        raw, usage = await with_retry(
            lambda: generate_json(credentials, system, prompt, temperature=0.7)
        )
        content = LinkedInExport.model_validate(raw)
    except Exception as e:
        logger.exception(f"LinkedIn export failed for {profile_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"LinkedIn export mislukt: {str(e)}"
        )

    source, transaction = await deduct_credit(
        db, current_user.id, TransactionType.LINKEDIN_EXPORT,
        "LinkedIn profiel export", profile_id=profile.id,
    )
    transaction.description = f"LinkedIn profiel export ({source} credit)"
    await db.flush()

    return {
        "success": True,
        "linkedInContent": content.to_wire(),
        "usage": usage.to_wire(),
    }
