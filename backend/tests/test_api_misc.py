from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from cvtailor.models import CreditTransaction, CVStatus, GeneratedCV, TransactionType, User
from cvtailor.schemas.cv import TokenUsage
from cvtailor.services.styling import THEME_DEFAULTS, theme_tokens

CV_ANSWER = {
    "headline": "Backend Engineer met 8 jaar Python ervaring",
    "summary": "Ervaren engineer.",
    "experience": [
        {"title": "Lead Engineer", "company": "Acme", "period": "2021 - heden",
         "highlights": ["Team van 5 engineers geleid"], "relevanceScore": 90},
    ],
    "education": [],
    "skills": {"technical": ["Python"], "soft": ["Samenwerken"]},
    "languages": [{"language": "Nederlands", "level": "Moedertaal"}],
    "certifications": [],
}


async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "healthy"}
    assert (await client.get("/")).json()["status"] == "running"


async def test_new_user_is_provisioned_with_free_credits(client, headers):
    response = await client.get("/api/auth/me", headers=headers("fresh-user"))
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "fresh-user"
    assert body["credits"] == {"free": 5, "purchased": 0, "total": 5}
    assert body["apiKeyConfigured"] is False


async def test_me_applies_monthly_reset(client, make_user, headers, session_maker):
    uid = await make_user(free=0, purchased=2)
    async with session_maker() as session:
        user = await session.get(User, uid)
        user.last_free_reset = datetime.now(timezone.utc) - timedelta(days=45)
        await session.commit()

    body = (await client.get("/api/auth/me", headers=headers(uid))).json()
    assert body["credits"] == {"free": 5, "purchased": 2, "total": 7}

    response = await client.post("/api/credits/check-reset", headers=headers(uid))
    assert response.json() == {"success": True, "reset": False, "message": "No reset needed"}


async def test_credit_balance(client, make_user, headers):
    uid = await make_user(free=3, purchased=4)
    body = (await client.get("/api/credits", headers=headers(uid))).json()
    assert (body["free"], body["purchased"], body["total"]) == (3, 4, 7)
    assert 1 <= body["daysUntilReset"] <= 31


async def test_api_key_settings(client, make_user, headers, session_maker):
    uid = await make_user()

    assert (await client.get("/api/settings/api-key", headers=headers(uid))).json() == {
        "configured": False, "provider": None, "model": None,
    }

    response = await client.put(
        "/api/settings/api-key",
        json={"provider": "made-up", "apiKey": "sk", "model": "m"},
        headers=headers(uid),
    )
    assert response.json() == {"error": "Invalid provider"}

    response = await client.put(
        "/api/settings/api-key",
        json={"provider": "openai", "apiKey": "  ", "model": "gpt-4o"},
        headers=headers(uid),
    )
    assert response.json() == {"error": "Provider, API key, and model are required"}

    response = await client.put(
        "/api/settings/api-key",
        json={"provider": "openai", "apiKey": "sk-secret", "model": "gpt-4o"},
        headers=headers(uid),
    )
    assert response.json() == {"success": True}

    status = (await client.get("/api/settings/api-key", headers=headers(uid))).json()
    assert status == {"configured": True, "provider": "openai", "model": "gpt-4o"}

    async with session_maker() as session:
        user = await session.get(User, uid)
        assert user.api_key_encrypted and "sk-secret" not in user.api_key_encrypted

    await client.delete("/api/settings/api-key", headers=headers(uid))
    status = (await client.get("/api/settings/api-key", headers=headers(uid))).json()
    assert status["configured"] is False


async def test_models_fall_back_when_registry_is_unreachable(client, monkeypatch):
    async def unreachable():
        raise RuntimeError("network down")

    monkeypatch.setattr("cvtailor.services.models_registry.get_providers", unreachable)

    body = (await client.get("/api/models")).json()
    assert body["success"] is True
    ids = [p["id"] for p in body["providers"]]
    assert ids[:3] == ["openai", "anthropic", "google"]
    assert all(p["models"] for p in body["providers"])


# ============================================================================
# CV generation and styling
# ============================================================================

async def test_generate_cv(client, make_user, headers, profile_data, monkeypatch, session_maker):
    uid = await make_user(api_key="sk-test", provider="anthropic", model="claude-sonnet-4-5")
    prompts = []

    async def generate_json(credentials, system, prompt, temperature=0.7):
        prompts.append(prompt)
        return CV_ANSWER, TokenUsage(prompt_tokens=1200, completion_tokens=400)

    monkeypatch.setattr("cvtailor.routers.cv.generate_json", generate_json)

    response = await client.post(
        "/api/cv/generate",
        json={
            "linkedInData": profile_data,
            "jobVacancy": {"title": "Backend Engineer", "keywords": ["Python"], "industry": "Software"},
            "designTokens": theme_tokens("modern").to_wire(),
            "language": "nl",
        },
        headers=headers(uid),
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["content"]["experience"][0]["relevanceScore"] == 90
    assert body["usage"] == {"promptTokens": 1200, "completionTokens": 400}
    assert "Backend Engineer" in prompts[0]

    async with session_maker() as session:
        cv = await session.get(GeneratedCV, body["cvId"])
    assert cv.llm_provider == "anthropic"
    assert cv.generated_content["summary"] == "Ervaren engineer."
    assert cv.design_tokens["themeBase"] == "modern"

    # Generation does not cost credits
    credits = (await client.get("/api/credits", headers=headers(uid))).json()
    assert credits["total"] == 5


async def test_generate_cv_errors(client, make_user, headers, profile_data, monkeypatch):
    uid = await make_user(api_key="sk-test")

    response = await client.post("/api/cv/generate", json={}, headers=headers(uid))
    assert response.json() == {"error": "LinkedIn data is required"}

    async def bad_key(credentials, system, prompt, temperature=0.7):
        raise RuntimeError("401 Unauthorized: invalid API key")

    monkeypatch.setattr("cvtailor.routers.cv.generate_json", bad_key)
    response = await client.post(
        "/api/cv/generate", json={"linkedInData": profile_data}, headers=headers(uid)
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid API key. Please check your settings."}


async def test_themes_are_public(client):
    body = (await client.get("/api/cv/themes")).json()
    assert [t["themeBase"] for t in body["themes"]] == list(THEME_DEFAULTS)
    assert body["themes"][0]["css"].startswith(":root {")


async def test_style_conversion(client, make_user, headers):
    uid = await make_user()
    tokens = theme_tokens("bold").to_wire()

    body = (await client.post("/api/cv/style", json={"tokens": tokens}, headers=headers(uid))).json()
    assert body["styleConfig"]["decorations"]["intensity"] == "bold"

    back = (await client.post(
        "/api/cv/style", json={"styleConfig": body["styleConfig"]}, headers=headers(uid)
    )).json()
    assert back["tokens"]["themeBase"] == "bold"
    assert back["tokens"]["sectionStyle"] == "timeline"

    response = await client.post("/api/cv/style", json={}, headers=headers(uid))
    assert response.status_code == 400


# ============================================================================
# Vacancy parsing, fit analysis and motivation letters
# ============================================================================

VACANCY_TEXT = (
    "Bol zoekt een Backend Engineer in Utrecht. Je bouwt schaalbare API's in Python "
    "en werkt met PostgreSQL en Kafka. Minimaal 5 jaar ervaring. Fulltime, hybride."
)

FIT_ANSWER = {
    "overallScore": 72,
    "verdict": "good",
    "verdictExplanation": "Sterke match op Python.",
    "warnings": [{"severity": "warning", "category": "skills", "message": "Geen Kafka", "detail": "Kafka ontbreekt."}],
    "strengths": [{"category": "skills", "message": "Python", "detail": "Jaren ervaring."}],
    "skillMatch": {"matched": ["Python"], "missing": ["Kafka"], "bonus": [], "matchPercentage": 50},
    "experienceMatch": {"candidateYears": 9, "requiredYears": 5, "gap": 4, "levelMatch": True},
    "advice": "Benoem streaming ervaring.",
}

LETTER_ANSWER = {
    "opening": "Bol bouwt aan de winkel van morgen.",
    "whyCompany": "Uw schaal spreekt mij aan.",
    "whyMe": "Ik leid een team van vijf engineers.",
    "motivation": "Ik wil impact maken.",
    "closing": "Graag licht ik dit toe in een gesprek.",
}


async def test_parse_job(client, make_user, headers, monkeypatch):
    uid = await make_user(api_key="sk-test")
    prompts = []

    async def generate_json(credentials, system, prompt, temperature=0.7):
        prompts.append(prompt)
        return (
            {"title": "Backend Engineer", "company": "Bol", "description": "API's bouwen",
             "requirements": ["5 jaar ervaring"], "keywords": ["Python", "Kafka"],
             "industry": "E-commerce", "location": "Utrecht", "employmentType": "fulltime"},
            TokenUsage(prompt_tokens=300, completion_tokens=90),
        )

    monkeypatch.setattr("cvtailor.routers.cv.generate_json", generate_json)

    response = await client.post(
        "/api/cv/job/parse", json={"rawText": VACANCY_TEXT}, headers=headers(uid)
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["data"]["company"] == "Bol"
    assert body["data"]["employmentType"] == "fulltime"
    assert body["data"]["rawText"] == VACANCY_TEXT
    assert body["usage"] == {"promptTokens": 300, "completionTokens": 90}
    assert VACANCY_TEXT in prompts[0]


async def test_parse_job_rejects_short_text(client, make_user, headers):
    uid = await make_user(api_key="sk-test")
    response = await client.post("/api/cv/job/parse", json={"rawText": "Developer gezocht"}, headers=headers(uid))
    assert response.status_code == 400
    assert response.json() == {"error": "Please paste a complete job vacancy (at least 50 characters)"}


async def test_parse_job_without_api_key(client, make_user, headers):
    uid = await make_user()
    response = await client.post("/api/cv/job/parse", json={"rawText": VACANCY_TEXT}, headers=headers(uid))
    assert response.status_code == 400
    assert response.json() == {"error": "API key not configured. Please add your API key in Settings."}


async def test_fit_analysis(client, make_user, headers, profile_data, monkeypatch):
    uid = await make_user(api_key="sk-test")
    prompts = []

    async def generate_json(credentials, system, prompt, temperature=0.7):
        prompts.append(prompt)
        return FIT_ANSWER, TokenUsage(prompt_tokens=800, completion_tokens=200)

    monkeypatch.setattr("cvtailor.routers.cv.generate_json", generate_json)

    response = await client.post(
        "/api/cv/fit-analysis",
        json={"linkedInData": profile_data, "jobVacancy": {"title": "Backend Engineer", "company": "Bol"}},
        headers=headers(uid),
    )

    assert response.status_code == 200, response.text
    analysis = response.json()["analysis"]
    assert analysis["verdict"] == "good"
    assert analysis["skillMatch"]["missing"] == ["Kafka"]
    assert analysis["experienceMatch"]["gap"] == 4
    assert "**Title:** Backend Engineer" in prompts[0]

    # Analysis does not cost credits
    assert (await client.get("/api/credits", headers=headers(uid))).json()["total"] == 5


async def test_fit_analysis_validation(client, make_user, headers, profile_data, monkeypatch):
    uid = await make_user(api_key="sk-test")

    response = await client.post(
        "/api/cv/fit-analysis", json={"jobVacancy": {"title": "Engineer"}}, headers=headers(uid)
    )
    assert response.json() == {"error": "Profile data is required"}

    response = await client.post(
        "/api/cv/fit-analysis", json={"linkedInData": profile_data}, headers=headers(uid)
    )
    assert response.json() == {"error": "Job vacancy is required"}

    async def unknown_verdict(credentials, system, prompt, temperature=0.7):
        return {**FIT_ANSWER, "verdict": "fantastic"}, TokenUsage()

    monkeypatch.setattr("cvtailor.routers.cv.generate_json", unknown_verdict)
    response = await client.post(
        "/api/cv/fit-analysis",
        json={"linkedInData": profile_data, "jobVacancy": {"title": "Engineer"}},
        headers=headers(uid),
    )
    assert response.status_code == 500


async def make_cv(session_maker, uid, profile_data, job=True, content=True):
    async with session_maker() as session:
        cv = GeneratedCV(
            user_id=uid,
            linkedin_data=profile_data,
            job_vacancy={"title": "Backend Engineer", "company": "Bol", "keywords": ["Python"]} if job else None,
            generated_content=CV_ANSWER if content else None,
            status=CVStatus.GENERATED if content else CVStatus.DRAFT,
        )
        session.add(cv)
        await session.commit()
        return cv.id


async def test_motivation_letter(client, make_user, headers, profile_data, monkeypatch, session_maker):
    uid = await make_user(api_key="sk-test", free=1)
    cv_id = await make_cv(session_maker, uid, profile_data)
    prompts = []

    async def generate_json(credentials, system, prompt, temperature=0.7):
        prompts.append((system, prompt))
        return LETTER_ANSWER, TokenUsage(prompt_tokens=900, completion_tokens=350)

    monkeypatch.setattr("cvtailor.routers.cv.generate_json", generate_json)

    assert (await client.get(f"/api/cv/{cv_id}/motivation", headers=headers(uid))).json() == {
        "success": True, "letter": None,
    }

    response = await client.post(
        f"/api/cv/{cv_id}/motivation",
        json={"personalMotivation": "Ik shop al jaren bij Bol", "language": "nl"},
        headers=headers(uid),
    )

    assert response.status_code == 200, response.text
    letter = response.json()["letter"]
    assert letter["whyMe"] == "Ik leid een team van vijf engineers."
    assert "Betreft: Sollicitatie Backend Engineer - Bol" in letter["fullText"]
    assert letter["fullText"].endswith("Met vriendelijke groet,\n\nJan de Vries")
    system, prompt = prompts[0]
    assert "Dutch (Nederlands)" in system
    assert '"Ik shop al jaren bij Bol"' in prompt
    assert "CV SUMMARY (for consistency):\nErvaren engineer." in prompt

    saved = (await client.get(f"/api/cv/{cv_id}/motivation", headers=headers(uid))).json()
    assert saved["letter"] == letter

    credits = (await client.get("/api/credits", headers=headers(uid))).json()
    assert credits["total"] == 0
    async with session_maker() as session:
        transaction = (await session.execute(
            select(CreditTransaction).where(CreditTransaction.user_id == uid)
        )).scalar_one()
    assert transaction.type == TransactionType.MOTIVATION_LETTER
    assert transaction.cv_id == cv_id

    # Out of credits now
    response = await client.post(f"/api/cv/{cv_id}/motivation", json={}, headers=headers(uid))
    assert response.status_code == 402
    assert len(prompts) == 1


async def test_motivation_letter_needs_generated_cv(client, make_user, headers, profile_data, session_maker):
    uid = await make_user(api_key="sk-test")

    response = await client.post("/api/cv/missing/motivation", json={}, headers=headers(uid))
    assert response.status_code == 404

    draft = await make_cv(session_maker, uid, profile_data, content=False)
    response = await client.post(f"/api/cv/{draft}/motivation", json={}, headers=headers(uid))
    assert response.json() == {"error": "CV content not generated yet. Generate CV first."}

    no_job = await make_cv(session_maker, uid, profile_data, job=False)
    response = await client.post(f"/api/cv/{no_job}/motivation", json={}, headers=headers(uid))
    assert response.status_code == 400

    other = await make_user(uid="someone-else", api_key="sk-test")
    response = await client.get(f"/api/cv/{no_job}/motivation", headers=headers(other))
    assert response.status_code == 404

    credits = (await client.get("/api/credits", headers=headers(uid))).json()
    assert credits["total"] == 5


async def test_motivation_letter_failure_keeps_credit(client, make_user, headers, profile_data,
                                                      monkeypatch, session_maker):
    uid = await make_user(api_key="sk-test")
    cv_id = await make_cv(session_maker, uid, profile_data)

    async def bad_key(credentials, system, prompt, temperature=0.7):
        raise RuntimeError("401 Unauthorized: invalid API key")

    monkeypatch.setattr("cvtailor.routers.cv.generate_json", bad_key)
    response = await client.post(f"/api/cv/{cv_id}/motivation", json={}, headers=headers(uid))

    assert response.status_code == 400
    assert (await client.get("/api/credits", headers=headers(uid))).json()["total"] == 5
