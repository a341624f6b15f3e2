import logging

from docx.oxml.ns import qn
from lxml import etree

from cvtailor.services.docx import apply_filled_segments, extract_segments, remove_empty_bullet_paragraphs
from cvtailor.services.docx.ai_fill import postprocess_fills

from docx_factory import TAB, paragraph_texts, parse_part


def test_label_paragraph_becomes_label_value():
    root = parse_part([("Persoonlijke gegevens",), ("Naam:",), ("Woonplaats:",)])
    extraction = extract_segments(root)

    changed = apply_filled_segments(extraction, {1: "Jan de Vries", 2: "Utrecht"})

    assert changed == 2
    assert paragraph_texts(root) == ["Persoonlijke gegevens", "Naam: Jan de Vries", "Woonplaats: Utrecht"]


def test_entry_paragraph_keeps_tab_row():
    root = parse_part([
        ("Werkervaring",),
        ("2018 - 2020", TAB, "Bedrijf"),
        ("Functie:", TAB, "Developer"),
    ])
    extraction = extract_segments(root)

    apply_filled_segments(extraction, {1: "2021 - Heden", 2: "Acme", 4: "Lead Engineer"})

    assert paragraph_texts(root)[1:] == ["2021 - Heden\tAcme", "Functie:\tLead Engineer"]


def test_entry_value_with_several_lines_adds_continuations():
    root = parse_part([("Werkervaring",), ("Taken:", TAB, "-")])
    extraction = extract_segments(root)

    apply_filled_segments(extraction, {2: "API ontwerp\nCode reviews"})

    assert paragraph_texts(root)[1:] == ["Taken:\tAPI ontwerp", "Code reviews"]


def test_unfilled_bullet_paragraphs_are_removed():
    root = parse_part([
        ("Werkervaring",),
        ("2018 - 2020", TAB, "Acme"),
        ("-",),
        ("•",),
    ])
    extraction = extract_segments(root)

    apply_filled_segments(extraction, {2: "Globex"})

    assert paragraph_texts(root) == ["Werkervaring", "2018 - 2020\tGlobex"]


def test_remove_empty_bullets_is_idempotent():
    root = parse_part([("•",), ("Tekst",), (": -",), ("- item",)])
    assert remove_empty_bullet_paragraphs(root) == 2
    assert remove_empty_bullet_paragraphs(root) == 0
    assert paragraph_texts(root) == ["Tekst", "- item"]


# ============================================================================
# Cleaning the model's answer
# ============================================================================

def test_postprocess_strips_labels_and_skips_headers():
    extraction = extract_segments(parse_part([
        ("Persoonlijke gegevens",),
        ("Naam:",),
        ("Bijzonderheden",),
        ("Rijbewijs B",),
        ("Beschikbaar",),
    ]))

    plan = postprocess_fills(
        {
            0: "Gegevens",
            1: "Naam: Jan de Vries",
            3: "2018 - 2020 Developer bij Acme",
            4: "Per direct",
            99: "unknown index",
        },
        extraction.segments,
    )

    assert plan.filled_segments == {1: "Jan de Vries", 4: "Per direct"}
    assert plan.warnings == [
        "Removed 1 segment(s) with misplaced work experience content from special_notes section."
    ]


def test_postprocess_rejects_emails_in_special_notes():
    extraction = extract_segments(parse_part([("Bijzonderheden",), ("Rijbewijs B",)]))
    plan = postprocess_fills({1: "jan@example.com"}, extraction.segments)
    assert plan.filled_segments == {}
    assert len(plan.warnings) == 1


# ============================================================================
# Paragraph properties and untouched content
# ============================================================================

def ppr_children(paragraph):
    ppr = paragraph.find(qn("w:pPr"))
    return [(child.tag, dict(child.attrib)) for child in ppr.iter() if child is not ppr]


def body_paragraphs(root):
    return list(root.iter(qn("w:p")))


def test_entry_label_paragraph_becomes_tab_row():
    root = parse_part([("Werkervaring",), ("Functie:",)])
    extraction = extract_segments(root)

    assert apply_filled_segments(extraction, {1: "Lead Engineer"}) == 1

    assert paragraph_texts(root) == ["Werkervaring", "Functie\tLead Engineer"]
    assert ppr_children(body_paragraphs(root)[1]) == [
        (qn("w:tabs"), {}),
        (qn("w:tab"), {qn("w:val"): "left", qn("w:pos"): "2800"}),
        (qn("w:ind"), {qn("w:left"): "2800", qn("w:hanging"): "2800"}),
    ]


def test_entry_label_with_several_lines_indents_continuations():
    root = parse_part([("Werkervaring",), ("Taken:",)])
    extraction = extract_segments(root)

    apply_filled_segments(extraction, {1: "API ontwerp\n-\nCode reviews"})

    paragraphs = body_paragraphs(root)
    assert paragraph_texts(root) == ["Werkervaring", "Taken\tAPI ontwerp", "Code reviews"]
    assert ppr_children(paragraphs[2]) == [(qn("w:ind"), {qn("w:left"): "2800"})]


def test_period_row_gets_spacing_before():
    root = parse_part([("Werkervaring",), ("2018 - 2020", TAB, "Bedrijf")])
    extraction = extract_segments(root)

    apply_filled_segments(extraction, {2: "Acme"})

    assert paragraph_texts(root)[1] == "2018 - 2020\tAcme"
    assert ppr_children(body_paragraphs(root)[1]) == [
        (qn("w:tabs"), {}),
        (qn("w:tab"), {qn("w:val"): "left", qn("w:pos"): "2880"}),
        (qn("w:spacing"), {qn("w:before"): "240"}),
        (qn("w:ind"), {qn("w:left"): "2880", qn("w:hanging"): "2880"}),
    ]


def test_empty_fill_only_drops_bullet_paragraphs():
    with_bullets = [
        ("Persoonlijke gegevens",),
        ("Naam:",),
        ("Werkervaring",),
        ("2018 - 2020", TAB, "Bedrijf"),
        ("-",),
        ("Functie:", TAB, "Developer"),
        ("•",),
    ]
    without_bullets = [p for p in with_bullets if p not in (("-",), ("•",))]
    root = parse_part(with_bullets)

    apply_filled_segments(extract_segments(root), {})
    remove_empty_bullet_paragraphs(root)

    assert etree.tostring(root) == etree.tostring(parse_part(without_bullets))


def test_untouched_paragraphs_keep_their_bytes():
    root = parse_part([
        ("Persoonlijke gegevens",),
        ("Naam:",),
        ("Woonplaats:",),
        ("Werkervaring",),
        ("2018 - 2020", TAB, "Bedrijf"),
        ("Functie:", TAB, "Developer"),
        ("Opleiding",),
        ("2010 - 2014", TAB, "HBO"),
    ])
    extraction = extract_segments(root)
    paragraphs = body_paragraphs(root)
    before = [etree.tostring(p) for p in paragraphs]

    # "Naam:" and the period row of the job are rewritten, the rest is not
    apply_filled_segments(extraction, {1: "Jan de Vries", 5: "Acme"})

    touched = {1, 4}
    for position, paragraph in enumerate(paragraphs):
        if position not in touched:
            assert etree.tostring(paragraph) == before[position]
    assert body_paragraphs(root) == paragraphs
    assert len(extract_segments(root).segments) == len(extraction.segments)


def test_postprocess_logs_fills_for_unknown_segments(caplog):
    extraction = extract_segments(parse_part([("Naam:",)]))

    with caplog.at_level(logging.DEBUG, logger="cvtailor.services.docx.ai_fill"):
        plan = postprocess_fills({0: "Jan", 7: "x", 3: "y"}, extraction.segments)

    assert plan.filled_segments == {0: "Jan"}
    assert "not offered to the model: [3, 7]" in caplog.text
