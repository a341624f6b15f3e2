import pytest

from cvtailor.exceptions import AIResponseError, ProviderError
from cvtailor.schemas.cv import FitAnalysis, TokenUsage
from cvtailor.schemas.profile import ParsedLinkedIn
from cvtailor.services.ai_providers import AICredentials
from cvtailor.services.docx import fill_docx_template
from cvtailor.services.docx.placeholders import analyze_docx_template

from docx_factory import TAB, build_docx, docx_paragraph_texts, part_xml

CREDENTIALS = AICredentials("openai", "k", "gpt-4o")

TEMPLATE = [
    ("Werkervaring",),
    ("2018 - 2020", TAB, "Bedrijf"),
    ("Functie:", TAB, "Developer"),
    ("Opleiding",),
    ("2010 - 2014", TAB, "HBO"),
]


@pytest.fixture
def profile(profile_data):
    return ParsedLinkedIn.model_validate(profile_data)


def fake_model(answer, prompts=None):
    async def generate_json(credentials, system, prompt, temperature=0.7):
        if prompts is not None:
            prompts.append(prompt)
        return answer, TokenUsage(prompt_tokens=100, completion_tokens=20)
    return generate_json


async def test_ai_fill_gives_every_job_its_own_block(monkeypatch, profile):
    prompts = []
    answer = {
        "filledSegments": [
            {"index": 1, "value": "2021 - Heden"},
            {"index": 2, "value": "Acme"},
            {"index": 4, "value": "Lead Engineer"},
            {"index": 5, "value": "2019 - 2021"},
            {"index": 6, "value": "Globex"},
            {"index": 8, "value": "Engineer"},
            {"index": 9, "value": "2015 - 2019"},
            {"index": 10, "value": "Initech"},
            {"index": 12, "value": "Junior Dev"},
        ],
        "warnings": [],
    }
    monkeypatch.setattr(
        "cvtailor.services.docx.ai_fill.generate_json", fake_model(answer, prompts)
    )

    result = await fill_docx_template(build_docx(TEMPLATE), [], profile, CREDENTIALS)

    assert result.mode == "ai"
    assert result.filled_fields == 9
    assert result.warnings == []
    assert docx_paragraph_texts(result.content) == [
        "Werkervaring",
        "2021 - Heden\tAcme",
        "Functie:\tLead Engineer",
        "",
        "2019 - 2021\tGlobex",
        "Functie:\tEngineer",
        "",
        "2015 - 2019\tInitech",
        "Functie:\tJunior Dev",
        "Opleiding",
        "2010 - 2014\tHBO",
    ]
    # The duplicated blocks are numbered before the model sees them
    assert "[12]" in prompts[0]
    assert "[13]" in prompts[0]


async def test_model_warnings_are_passed_on(monkeypatch, profile):
    answer = {"filledSegments": [{"index": 2, "value": "Acme"}], "warnings": ["Geen opleiding gevonden"]}
    monkeypatch.setattr("cvtailor.services.docx.ai_fill.generate_json", fake_model(answer))

    single = profile.model_copy(update={"experience": profile.experience[:1]})
    result = await fill_docx_template(build_docx(TEMPLATE), [], single, CREDENTIALS)

    assert result.warnings == ["Geen opleiding gevonden"]
    assert docx_paragraph_texts(result.content)[1] == "2018 - 2020\tAcme"


async def test_fit_analysis_reaches_the_fill_prompt(monkeypatch, profile):
    prompts = []
    answer = {"filledSegments": [{"index": 2, "value": "Acme"}], "warnings": []}
    monkeypatch.setattr("cvtailor.services.docx.ai_fill.generate_json", fake_model(answer, prompts))
    fit = FitAnalysis.model_validate({
        "overallScore": 20, "verdict": "unlikely", "skillMatch": {"matched": ["Python"]},
    })

    single = profile.model_copy(update={"experience": profile.experience[:1]})
    await fill_docx_template(build_docx(TEMPLATE), [], single, CREDENTIALS, language="en", fit_analysis=fit)

    assert "EMPHASIZE these matched skills in descriptions: Python" in prompts[0]
    assert "NOTE: Fit is moderate" in prompts[0]


async def test_malformed_answer_is_an_ai_response_error(monkeypatch, profile):
    answer = {"filledSegments": [{"index": "first", "value": None}]}
    monkeypatch.setattr("cvtailor.services.docx.ai_fill.generate_json", fake_model(answer))

    with pytest.raises(AIResponseError):
        await fill_docx_template(build_docx(TEMPLATE), [], profile, CREDENTIALS)


async def test_template_without_placeholders_needs_credentials(profile):
    with pytest.raises(ProviderError) as exc_info:
        await fill_docx_template(build_docx(TEMPLATE), [], profile, None)
    assert exc_info.value.status_code == 400


async def test_placeholder_template_needs_no_ai(profile):
    template = build_docx([("Naam: {{naam}}",), ("Telefoon: [TELEFOON]",)])
    _, placeholders = analyze_docx_template(template)

    stored = await fill_docx_template(template, placeholders, profile, None)
    detected = await fill_docx_template(template, [], profile, None)

    for result in (stored, detected):
        assert result.mode == "placeholder"
        assert result.filled_fields == 2
        assert docx_paragraph_texts(result.content) == ["Naam: Jan de Vries", "Telefoon: 0612345678"]


async def test_header_gets_only_text_segments_and_loses_empty_bullets(monkeypatch, profile):
    prompts = []
    answer = {"filledSegments": [{"index": 0, "value": "Jan de Vries"}]}
    monkeypatch.setattr(
        "cvtailor.services.docx.ai_fill.generate_json", fake_model(answer, prompts)
    )
    header = part_xml([("Jan",), (" ",), ("-",)], root="header")
    single = profile.model_copy(update={"experience": profile.experience[:1]})

    result = await fill_docx_template(
        build_docx(TEMPLATE, {"word/header1.xml": header}), [], single, CREDENTIALS
    )

    assert len(prompts) == 2
    assert "\n[0] Jan" in prompts[1]
    assert "\n[1] " not in prompts[1]
    assert "\n[2] -" not in prompts[1]
    assert result.filled_fields == 1
    assert docx_paragraph_texts(result.content, "word/header1.xml") == ["Jan de Vries", " "]
