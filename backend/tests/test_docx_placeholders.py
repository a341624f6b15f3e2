import pytest

from cvtailor.exceptions import TemplateStructureError
from cvtailor.schemas.profile import ParsedLinkedIn
from cvtailor.schemas.template import EducationMapping, ExperienceMapping, PersonalMapping
from cvtailor.services.docx.placeholders import (
    analyze_docx_template,
    detect_placeholders,
    estimate_docx_page_count,
    fill_docx_auto,
    format_period,
    get_field_value,
    parse_field_name,
)

from docx_factory import build_docx, docx_paragraph_texts


@pytest.fixture
def profile(profile_data):
    return ParsedLinkedIn.model_validate(profile_data)


def test_detects_each_placeholder_kind_once():
    text = "Naam: {{naam}}\nEmail: {email}\n[TELEFOON]\nWoonplaats: ______\nNaam: {{naam}}"
    placeholders = detect_placeholders(text)

    assert [p.original_text for p in placeholders] == [
        "{{naam}}", "[TELEFOON]", "{email}", "Woonplaats: ______",
    ]
    assert [p.placeholder_type for p in placeholders] == [
        "explicit", "explicit", "explicit", "label-with-space",
    ]
    assert [p.mapping.field for p in placeholders] == ["fullName", "phone", "email", "city"]
    assert all(p.confidence == "high" for p in placeholders)


def test_unknown_names_map_to_custom():
    [placeholder] = detect_placeholders("{{xyz}}")
    assert placeholder.mapping.type == "custom"
    assert placeholder.confidence == "low"


@pytest.mark.parametrize("name, expected, confidence", [
    ("voornaam", PersonalMapping(field="firstName"), "high"),
    ("functie_1", ExperienceMapping(index=0, field="title"), "high"),
    ("bedrijf 2", ExperienceMapping(index=1, field="company"), "high"),
    ("school[2]", EducationMapping(index=1, field="school"), "high"),
    ("werkgever", ExperienceMapping(index=0, field="company"), "medium"),
])
def test_parse_field_name(name, expected, confidence):
    mapping, found = parse_field_name(name)
    assert mapping == expected
    assert found == confidence


def test_field_values(profile):
    assert get_field_value(PersonalMapping(field="firstName"), profile) == "Jan"
    assert get_field_value(PersonalMapping(field="lastName"), profile) == "de Vries"
    assert get_field_value(PersonalMapping(field="city"), profile) == "Utrecht"
    assert get_field_value(PersonalMapping(field="nationality"), profile, {"nationality": "NL"}) == "NL"
    assert get_field_value(ExperienceMapping(index=0, field="period"), profile) == "2021 - Heden"
    assert get_field_value(ExperienceMapping(index=2, field="period"), profile) == "2015 - 2019"
    assert get_field_value(ExperienceMapping(index=7, field="title"), profile) == ""
    assert get_field_value(EducationMapping(index=0, field="school"), profile) == ""


def test_format_period():
    assert format_period("2019", None) == "2019 - Heden"
    assert format_period("2019", "2021", is_current=True) == "2019 - Heden"
    assert format_period(None, "2021") == "2021"


def test_fill_replaces_placeholders_split_over_runs(profile):
    template = build_docx([
        ("Naam: ", "{{na", "am}}"),
        ("Woonplaats: ______",),
        ("[FUNCTIE 1]", " bij ", "{{bedrijf_2}}"),
        ("{{periode_1}}",),
        ("{{xyz}}",),
    ])

    content, detected, filled = fill_docx_auto(template, profile)

    assert len(detected) == 6
    assert filled == 5
    assert docx_paragraph_texts(content) == [
        "Naam: Jan de Vries",
        "Woonplaats: Utrecht",
        "Lead Engineer bij Globex",
        "2021 - Heden",
        "{{xyz}}",
    ]


def test_analyze_and_page_estimate():
    template = build_docx([("Curriculum Vitae",), ("{{email}}",)])
    text, placeholders = analyze_docx_template(template)
    assert text == "Curriculum Vitae\n{{email}}"
    assert [p.original_text for p in placeholders] == ["{{email}}"]
    assert estimate_docx_page_count(template) == 1


def test_not_a_docx():
    with pytest.raises(TemplateStructureError, match="missing word/document.xml"):
        analyze_docx_template(b"plain text, not a zip")
