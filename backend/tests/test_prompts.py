from datetime import date

import pytest

from cvtailor.schemas.cv import FitAnalysis, MotivationLetterSections
from cvtailor.schemas.design_tokens import CVStyleConfig
from cvtailor.schemas.profile import JobVacancy, ParsedLinkedIn
from cvtailor.services.prompts import (
    HONESTY_POLICY,
    build_cv_prompt,
    build_enrichment_prompt,
    build_fit_analysis_prompt,
    build_job_parse_prompt,
    build_linkedin_export_prompt,
    build_motivation_prompt,
    format_letter_date,
    format_motivation_letter,
    get_industry_guidance,
)
from cvtailor.services.docx.ai_fill import build_fill_prompts, build_fit_summary
from cvtailor.services.styling import theme_tokens, tokens_to_style_config


@pytest.fixture
def profile(profile_data):
    return ParsedLinkedIn.model_validate(profile_data)


@pytest.fixture
def job():
    return JobVacancy(
        title="Backend Engineer",
        company="Bol",
        description="Bouw schaalbare API's",
        requirements=["5 jaar Python", "Ervaring met PostgreSQL"],
        keywords=["Python", "PostgreSQL", "Kubernetes", "Kafka"],
        industry="Software",
    )


@pytest.mark.parametrize("industry, heading", [
    ("Software", "Technology"),
    ("Banking", "Finance/Banking"),
    ("Healthcare", "Healthcare/Medical"),
    ("Management Consulting", "Consulting"),
    ("Creative agency", "Marketing/Creative"),
    ("Retail", "Retail/Sales"),
    ("Agriculture", "Agriculture"),
])
def test_industry_guidance_buckets(industry, heading):
    assert f"**Industry Focus ({heading}):**" in get_industry_guidance(industry)


def test_no_industry_gives_no_guidance():
    assert get_industry_guidance(None) == ""
    assert get_industry_guidance("") == ""


def test_cv_prompt_for_target_job(profile, job):
    system, prompt = build_cv_prompt(profile, job, language="en")

    assert "valid JSON" in system
    assert "Generate the CV content in English." in prompt
    assert "## Target Job:" in prompt
    assert "Python, PostgreSQL, Kubernetes, Kafka" in prompt
    assert "Weave in Python, PostgreSQL, Kubernetes where" in prompt
    assert "Do not inflate seniority" in prompt
    assert "**Industry Focus (Technology):**" in prompt
    assert HONESTY_POLICY["en"] in prompt
    assert "Jan de Vries" in prompt
    assert "- 3-5 highlights per experience" in prompt


def test_cv_prompt_without_job_leaves_headline_empty(profile):
    _, prompt = build_cv_prompt(profile)

    assert "## Target Job:" not in prompt
    assert "Leave the headline empty" in prompt
    assert "Genereer de CV-inhoud in het Nederlands." in prompt
    assert HONESTY_POLICY["nl"] in prompt


def test_compact_spacing_shortens_bullets(profile):
    tokens = theme_tokens("professional").model_copy(update={"spacing": "compact"})
    style: CVStyleConfig = tokens_to_style_config(tokens)

    _, prompt = build_cv_prompt(profile, style_config=style)

    assert "- 2-3 highlights per experience" in prompt
    assert "max 15 words" in prompt


def test_paragraph_description_format(profile):
    _, bullets = build_cv_prompt(profile)
    _, paragraph = build_cv_prompt(profile, description_format="paragraph")

    assert "separate bullet points" in bullets
    assert "one short paragraph" in paragraph


def test_enrichment_prompt(profile):
    system, prompt = build_enrichment_prompt(profile, "Ik heb ook een AWS certificaat behaald")

    assert "JSON" in system
    assert "BESTAAND PROFIEL" in prompt
    assert "Ik heb ook een AWS certificaat behaald" in prompt
    assert "Lead Engineer bij Acme" in prompt
    assert "newCertifications" in prompt


def test_linkedin_export_prompt_language(profile):
    _, dutch = build_linkedin_export_prompt(profile, "nl")
    _, english = build_linkedin_export_prompt(profile, "en")

    assert "Schrijf in het Nederlands" in dutch
    assert "Write in English" in english
    assert "WERKERVARING" in dutch


# ============================================================================
# Vacancy parsing, fit analysis and motivation letters
# ============================================================================

@pytest.fixture
def fit():
    return FitAnalysis.model_validate({
        "overallScore": 35,
        "verdict": "challenging",
        "strengths": [
            {"category": "skills", "message": "Sterke Python basis"},
            {"category": "experience", "message": "Leidinggevende ervaring"},
            {"category": "general", "message": "Snelle leerder"},
            {"category": "industry", "message": "Kent de sector"},
        ],
        "skillMatch": {
            "matched": ["Python", "SQL", "Docker", "Git", "Linux", "Bash"],
            "missing": ["Kafka"],
            "bonus": ["Go", "Rust", "Terraform", "Ansible"],
            "matchPercentage": 60,
        },
    })


def test_job_parse_prompt_carries_the_raw_text():
    system, prompt = build_job_parse_prompt("Wij zoeken een Backend Engineer in Utrecht")

    assert "vacatureteksten" in system
    assert "Wij zoeken een Backend Engineer in Utrecht" in prompt
    assert '"employmentType"' in prompt


def test_fit_analysis_prompt(profile, job):
    system, prompt = build_fit_analysis_prompt(profile, job)

    assert "valid JSON" in system
    assert "**Name:** Jan de Vries" in prompt
    assert "- Lead Engineer at Acme (2021 - Present): No description" in prompt
    assert "No education listed" in prompt
    assert "Nederlands (Moedertaal)" in prompt
    assert "- 5 jaar Python" in prompt
    assert '"skillMatch"' in prompt


def test_fit_score_is_clamped():
    analysis = FitAnalysis.model_validate({"overallScore": 140, "verdict": "excellent"})
    assert analysis.overall_score == 100
    assert FitAnalysis.model_validate({"overallScore": -5, "verdict": "unlikely"}).overall_score == 0


def test_fit_summary_takes_the_top_items(fit):
    summary = build_fit_summary(fit, "en")

    assert "EMPHASIZE these matched skills in descriptions: Python, SQL, Docker, Git, Linux\n" in summary
    assert "KEY STRENGTHS to highlight: Sterke Python basis; Leidinggevende ervaring; Snelle leerder\n" in summary
    assert "BONUS skills that add value: Go, Rust, Terraform\n" in summary
    assert summary.endswith("emphasize transferable skills and learning ability")
    assert build_fit_summary(None) == ""


def test_good_fit_gets_no_transferable_skills_note(fit):
    good = fit.model_copy(update={"verdict": "good"})
    assert "LET OP" not in build_fit_summary(good, "nl")
    assert "LET OP: Fit is matig" in build_fit_summary(fit, "nl")


def test_fill_prompt_includes_fit_summary(profile, job, fit):
    _, without = build_fill_prompts([], [], profile, job)
    _, with_fit = build_fill_prompts([], [], profile, job, fit_analysis=fit)

    assert "FIT ANALYSE" not in without
    assert "--- FIT ANALYSE (gebruik dit om content te optimaliseren) ---" in with_fit
    assert with_fit.index("FIT ANALYSE") > with_fit.index("DOELVACATURE")


def test_motivation_prompt(profile, job):
    system, prompt = build_motivation_prompt(profile, job, "Ervaren engineer.", "nl")

    assert "Dutch (Nederlands)" in system
    assert "Kind regards" in system
    assert "Position: Backend Engineer" in prompt
    assert "Company: Bol" in prompt
    assert "CV SUMMARY (for consistency):\nErvaren engineer." in prompt
    assert "PERSONAL MOTIVATION" not in prompt
    assert "- Junior Developer at Initech" in prompt


def test_motivation_prompt_uses_personal_motivation_and_top_three_jobs(profile, job):
    profile.experience.append(profile.experience[0].model_copy(update={"company": "Hooli"}))
    system, prompt = build_motivation_prompt(
        profile, job, "Samenvatting", "en", personal_motivation="  Ik wil bij Bol werken  "
    )

    assert "Write the entire letter in English" in system
    assert '"Ik wil bij Bol werken"' in prompt
    assert "Hooli" not in prompt


def test_letter_date():
    assert format_letter_date(date(2025, 3, 7), "nl") == "7 maart 2025"
    assert format_letter_date(date(2025, 3, 7), "en") == "March 7, 2025"


def test_full_motivation_letter():
    sections = MotivationLetterSections(
        opening="Open.", why_company="Bedrijf.", why_me="Ik.", motivation="Drive.", closing="Tot ziens."
    )

    dutch = format_motivation_letter(sections, "Jan de Vries", "Backend Engineer", "Bol", "nl",
                                     today=date(2025, 1, 15))
    assert dutch.split("\n\n") == [
        "15 januari 2025",
        "Betreft: Sollicitatie Backend Engineer - Bol",
        "Geachte heer/mevrouw,",
        "Open.", "Bedrijf.", "Ik.", "Drive.", "Tot ziens.",
        "Met vriendelijke groet,",
        "Jan de Vries",
    ]

    english = format_motivation_letter(sections, "Jan", "Engineer", None, "en", today=date(2025, 1, 15))
    assert english.startswith("January 15, 2025\n\nRe: Application Engineer\n\nDear Hiring Manager,")
    assert english.endswith("Kind regards,\n\nJan")
