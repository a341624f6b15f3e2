"""
AI-driven segment filling.

The model receives the template as numbered segments grouped by CV section
together with the profile, and answers which segment gets which text.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import Field, ValidationError

from ...exceptions import AIResponseError
from ...schemas.base import CamelModel
from ...schemas.cv import FitAnalysis
from ...schemas.profile import JobVacancy, ParsedLinkedIn
from ..ai_providers import AICredentials, generate_json
from ..retry import with_retry
from .extractor import Segment, SectionInfo
from .rules import SPECIAL_NOTES, UNKNOWN, DocxRules, load_rules

logger = logging.getLogger(__name__)

FILL_TEMPERATURE = 0.5
HEADER_MARK = "[SECTION HEADER - DO NOT MODIFY]"


# ============================================================================
# Prompt text
# ============================================================================

SECTION_RULES = {
    "personal_info": {
        "nl": "Alleen: naam, adres, telefoon, email, geboortedatum, nationaliteit",
        "en": "Only: name, address, phone, email, date of birth, nationality",
    },
    "work_experience": {
        "nl": "ALLEEN: bedrijfsnamen, functies, werkzaamheden/taken, periodes van WERK. Dit is de ENIGE sectie voor werkgerelateerde content!",
        "en": "ONLY: company names, job titles, tasks/responsibilities, work periods. This is the ONLY section for work-related content!",
    },
    "education": {
        "nl": "Alleen: scholen, opleidingen, diploma's, studierichtingen, studieperiodes",
        "en": "Only: schools, degrees, diplomas, fields of study, education periods",
    },
    "special_notes": {
        "nl": (
            "ALLEEN: beschikbaarheid, vervoer, rijbewijs.\n"
            "⚠️ VERBODEN: werkervaring, functies, bedrijfsnamen, periodes (2020-2024), @-tekens, talen!\n"
            'Vul ALLEEN de velden in die in het template staan (bijv. "Beschikbaarheid" en "Vervoer").\n'
            "Voeg GEEN extra velden toe die niet in het template staan!\n"
            "Als je werkgerelateerde content hier plaatst, is het CV ONGELDIG."
        ),
        "en": (
            "ONLY: availability, transport, driver's license.\n"
            "⚠️ FORBIDDEN: work experience, job titles, company names, periods (2020-2024), @-signs, languages!\n"
            'Fill ONLY the fields that exist in the template (e.g., "Availability" and "Transport").\n'
            "Do NOT add extra fields that are not in the template!\n"
            "Placing work-related content here makes the CV INVALID."
        ),
    },
    "skills": {
        "nl": "Alleen: technische vaardigheden, soft skills, talen, certificaten",
        "en": "Only: technical skills, soft skills, languages, certifications",
    },
    "languages": {
        "nl": "Alleen: talen en taalniveaus",
        "en": "Only: languages and proficiency levels",
    },
    "references": {
        "nl": "Alleen: referenties en contactpersonen",
        "en": "Only: references and contact persons",
    },
    "hobbies": {
        "nl": "Alleen: hobby's en interesses",
        "en": "Only: hobbies and interests",
    },
    "unknown": {
        "nl": "Algemene content - bepaal op basis van context",
        "en": "General content - determine based on context",
    },
}

SECTION_RULES_TEXT = {
    "en": """
=== SECTION RULES (CRITICAL!) ===

1. WORK EXPERIENCE SECTION:
   - Fill ONLY: company names, job titles, tasks/responsibilities, work periods
   - This is the ONLY section for work-related content
   - NEVER put work experience in other sections!

2. SPECIAL NOTES / ADDITIONAL INFO ("Bijzonderheden") SECTION:
   ⚠️ CRITICAL RESTRICTIONS:
   - Fill ONLY the exact fields that exist in the template (e.g., "Beschikbaarheid", "Vervoer")
   - Do NOT add content for fields that don't exist (e.g., don't add "Talen" if there's no Talen field)
   - FORBIDDEN CONTENT (will be removed):
     * Job titles (Developer, Manager, Founder, etc.)
     * Company names
     * Work periods (2020-2024, 2025-Heden)
     * Career summaries
     * @ symbols (like "Developer @ Company")
     * Languages (unless there is a specific "Talen" field)
   - If you place work-related content here, it will be DELETED!

3. EDUCATION SECTION:
   - Fill ONLY: schools, degrees, fields of study, education periods
   - NEVER put work experience here!

4. PERSONAL INFO SECTION:
   - Fill ONLY: name, address, phone, email, date of birth

⚠️ WARNING: Each content type belongs in ONLY ONE specific section!
""",
    "nl": """
=== SECTIE REGELS (KRITIEK!) ===

1. WERKERVARING SECTIE:
   - Vul ALLEEN: bedrijfsnamen, functies, werkzaamheden/taken, werkperiodes
   - Dit is de ENIGE sectie voor werkgerelateerde content
   - ZET NOOIT werkervaring in andere secties!

2. BIJZONDERHEDEN / AANVULLENDE INFO SECTIE:
   ⚠️ KRITIEKE BEPERKINGEN:
   - Vul ALLEEN de exacte velden in die in het template staan (bijv. "Beschikbaarheid", "Vervoer")
   - Voeg GEEN content toe voor velden die niet bestaan (bijv. geen "Talen" als er geen Talen veld is)
   - VERBODEN CONTENT (wordt verwijderd):
     * Functietitels (Developer, Manager, Founder, etc.)
     * Bedrijfsnamen
     * Werkperiodes (2020-2024, 2025-Heden)
     * Carrière samenvattingen
     * @ symbolen (zoals "Developer @ Bedrijf")
     * Talen (tenzij er specifiek een "Talen" veld is)
   - Als je werkgerelateerde content hier plaatst, wordt het VERWIJDERD!

3. OPLEIDINGEN SECTIE:
   - Vul ALLEEN: scholen, diploma's, studierichtingen, studieperiodes
   - ZET NOOIT werkervaring hier!

4. PERSOONLIJKE GEGEVENS SECTIE:
   - Vul ALLEEN: naam, adres, telefoon, email, geboortedatum

⚠️ WAARSCHUWING: Elk type content hoort in SLECHTS ÉÉN specifieke sectie!
""",
}

PROMPTS = {
    "en": {
        "system": """You are a CV filling specialist. You receive a numbered CV template and must fill in the values.

CRITICAL RULES:
- Use ONLY the exact data from the profile
- NEVER invent extra education, experiences or years
- If data is "Unknown", leave the field empty or use "-"
- FILL ALL work experience and education, including older ones - skip NOTHING!
- If there are more experiences than template slots, fill available slots with most recent/relevant
- Do NOT worry about space or following sections - fill everything that fits

SECTION HEADERS (marked with [SECTION HEADER - DO NOT MODIFY]):
- NEVER include section header segments in your output
- These are formatting elements that must remain unchanged

LABEL:VALUE FIELDS:
- For segments with "Label : " pattern (e.g., "Position : ", "Tasks : "), return ONLY the value
- Example: [13] "Position : " → return { "index": "13", "value": "ServiceNow Developer" }
- Do NOT repeat the label in your value! Wrong: "Position : ServiceNow Developer"
- For period fields like "2024-Present : ", return the REAL period and company separated by a tab
- Example: [12] "2024-Present : " → return { "index": "12", "value": "2020-Present\\tAlliander" }

TAB-SEPARATED FIELDS:
- Some templates have label and value in separate segments separated by tab characters
- Segments like ": " or ": CompanyName" after tabs contain the value. Return ONLY the value without the ":"
- Example: [13] ": Alliander" → return { "index": "13", "value": "Snow-Flow" }
- Example: [10] ": ServiceNow Developer" → return { "index": "10", "value": "Data Engineer" }
- For period segments (e.g., "2024" or "2025-Heden"), return "YEAR-YEAR\\tCompanyName" with tab separator

EDUCATION PERIOD FIELDS:
- Education periods work the SAME way as work experience periods
- For period segments in education (e.g., "2022-2024" or "2022-2024 : "), return "STARTYEAR-ENDYEAR\\tSchoolName - Degree"
- Example: [5] "2022-2024" → return { "index": "5", "value": "2015-2017\\tRijn IJssel - MBO 4 Entrepreneurship" }
- ALWAYS include the school name and degree after the tab separator! Never return just the year range.
- ALWAYS keep the full year range together (e.g., "2015-2017"), NEVER split it across label and value
- The year range goes in the LEFT column, school + degree in the RIGHT column

INSTRUCTIONS:
1. You receive text segments with numbers: [0] text, [1] text, etc.
2. Fill each segment with the correct profile data
3. Return an ARRAY of objects with index and value
4. Only segments that need to be CHANGED should be in the output
5. NEVER modify segments marked [SECTION HEADER - DO NOT MODIFY]

Answer with JSON: { "filledSegments": [ { "index": "0", "value": "..." } ], "warnings": [] }""",
        "template_header": "NUMBERED TEMPLATE",
        "profile_header": "PROFILE DATA",
        "job_header": "TARGET JOB (adapt content to this)",
        "instructions": """Fill all segments with the correct profile data. Return an array of { index, value } objects.

WORK EXPERIENCE ORDER:
The first "Position :" and "Tasks :" after a period belong to work experience 1.
The second set belongs to work experience 2, etc.

After block duplication, all work experience slots may have IDENTICAL placeholder text.
You MUST fill each slot with a DIFFERENT experience from the profile, in chronological order (most recent first).
Slot 1 = experience 1, Slot 2 = experience 2, Slot 3 = experience 3, etc.
NEVER fill two slots with the same experience!

EDUCATION ORDER:
Education entries follow the same pattern as work experience.
After block duplication, all education slots may have IDENTICAL placeholder text.
You MUST fill each slot with a DIFFERENT education from the profile, in chronological order (most recent first).
Slot 1 = education 1, Slot 2 = education 2, etc.
NEVER fill two education slots with the same education!
Each education period segment MUST contain "STARTYEAR-ENDYEAR\\tSchool - Degree" (with tab separator).
NEVER return just the year range. ALWAYS include the school name and degree after the tab.

IMPORTANT:
- Fill ALL empty segments where data belongs
- For "Label : " segments, return ONLY the value (not the label)
- For period segments ("2024-Present : "), return "YEAR-YEAR\\tCompanyName"
- For education period segments ("2022-2024" or "2022-2024 : "), return "STARTYEAR-ENDYEAR\\tSchool - Degree"
- Fill availability, transport etc. if known
- Return ONLY segments that need to be changed
- NEVER return section header segments
- FILL ALL work experience - including older jobs! Skip no experience.
- FILL ALL education entries - including older ones! Skip no education.
- If there are multiple work experience slots, fill them ALL with available experiences
- If there are multiple education slots, fill them ALL with available educations
- Space is NOT a problem - fill everything from the profile""",
        "format_paragraph": "\n--- EXPERIENCE FORMAT: PARAGRAPH ---\nWrite work experience as flowing paragraphs (2-3 sentences). Do not use bullet points.",
        "format_bullets": '\n--- EXPERIENCE FORMAT: BULLETS ---\nUse bullet points (starting with "- ") for work experience descriptions.',
        "custom_header": "USER INSTRUCTIONS (IMPORTANT - follow these adjustments)",
    },
    "nl": {
        "system": """Je bent een CV invul-specialist. Je krijgt een genummerd CV template en moet de waarden invullen.

KRITIEKE REGELS:
- Gebruik ALLEEN de exacte gegevens uit de profieldata
- VERZIN NOOIT extra opleidingen, ervaringen of jaren
- Als data "Onbekend" is, laat het veld dan leeg of gebruik "-"
- VUL ALLE werkervaring en opleidingen in, ook oudere - sla NIETS over!
- Als er meer ervaringen zijn dan template slots, vul dan de beschikbare slots met de meest recente/relevante
- Maak je GEEN zorgen over ruimte of volgende secties - vul alles in wat past

SECTIE HEADERS (gemarkeerd met [SECTION HEADER - DO NOT MODIFY]):
- Neem NOOIT sectie header segmenten op in je output
- Dit zijn opmaak-elementen die ongewijzigd moeten blijven

LABEL:WAARDE VELDEN:
- Voor segmenten met "Label : " patroon (bijv. "Functie : ", "Werkzaamheden : "), retourneer ALLEEN de waarde
- Voorbeeld: [13] "Functie : " → retourneer { "index": "13", "value": "ServiceNow Developer" }
- Herhaal NIET het label in je waarde! Fout: "Functie : ServiceNow Developer"
- Voor periode velden zoals "2024-Heden : ", retourneer de ECHTE periode en bedrijfsnaam gescheiden door een tab
- Voorbeeld: [12] "2024-Heden : " → retourneer { "index": "12", "value": "2020-Heden\\tAlliander" }

TAB-GESCHEIDEN VELDEN:
- Sommige templates hebben label en waarde in aparte segmenten gescheiden door tab-tekens
- Segmenten zoals ": " of ": Bedrijfsnaam" na tabs bevatten de waarde. Retourneer ALLEEN de waarde zonder de ":"
- Voorbeeld: [13] ": Alliander" → retourneer { "index": "13", "value": "Snow-Flow" }
- Voorbeeld: [10] ": ServiceNow Developer" → retourneer { "index": "10", "value": "Data Engineer" }
- Voor periode segmenten (bijv. "2024" of "2025-Heden"), retourneer "JAAR-JAAR\\tBedrijfsnaam" met tab-scheiding

OPLEIDING PERIODE VELDEN:
- Opleidingsperiodes werken HETZELFDE als werkervaring periodes
- Voor periode segmenten in opleidingen (bijv. "2022-2024" of "2022-2024 : "), retourneer "STARTJAAR-EINDJAAR\\tSchool - Diploma"
- Voorbeeld: [5] "2022-2024" → retourneer { "index": "5", "value": "2015-2017\\tRijn IJssel - MBO 4 Entrepreneurship" }
- Retourneer ALTIJD de schoolnaam en diploma na de tab-scheiding! Retourneer nooit alleen het jaarbereik.
- Houd ALTIJD het volledige jaarbereik bij elkaar (bijv. "2015-2017"), splits het NOOIT over label en waarde
- Het jaarbereik gaat in de LINKER kolom, school + diploma in de RECHTER kolom

INSTRUCTIES:
1. Je krijgt tekst segmenten met nummers: [0] tekst, [1] tekst, etc.
2. Vul elk segment in met de juiste profieldata
3. Retourneer een ARRAY van objecten met index en value
4. Alleen segmenten die GEWIJZIGD moeten worden hoeven in de output
5. Wijzig NOOIT segmenten gemarkeerd met [SECTION HEADER - DO NOT MODIFY]

Antwoord met JSON: { "filledSegments": [ { "index": "0", "value": "..." } ], "warnings": [] }""",
        "template_header": "GENUMMERD TEMPLATE",
        "profile_header": "PROFIELDATA",
        "job_header": "DOELVACATURE (pas content hierop aan)",
        "instructions": """Vul alle segmenten in met de juiste profieldata. Retourneer een array van { index, value } objecten.

WERKERVARING VOLGORDE:
De eerste "Functie :" en "Werkzaamheden :" na een periode horen bij werkervaring 1.
De tweede set hoort bij werkervaring 2, etc.

Na blok-duplicatie kunnen alle werkervaring slots IDENTIEKE placeholder tekst hebben.
Je MOET elk slot vullen met een ANDERE ervaring uit het profiel, in chronologische volgorde (meest recent eerst).
Slot 1 = ervaring 1, Slot 2 = ervaring 2, Slot 3 = ervaring 3, etc.
Vul NOOIT twee slots met dezelfde ervaring!

OPLEIDING VOLGORDE:
Opleidingen volgen hetzelfde patroon als werkervaring.
Na blok-duplicatie kunnen alle opleiding slots IDENTIEKE placeholder tekst hebben.
Je MOET elk slot vullen met een ANDERE opleiding uit het profiel, in chronologische volgorde (meest recent eerst).
Slot 1 = opleiding 1, Slot 2 = opleiding 2, etc.
Vul NOOIT twee opleiding slots met dezelfde opleiding!
Elk opleiding-periode segment MOET "STARTJAAR-EINDJAAR\\tSchool - Diploma" bevatten (met tab-scheiding).
Retourneer NOOIT alleen het jaarbereik. Neem ALTIJD de schoolnaam en diploma op na de tab.

BELANGRIJK:
- Vul ALLE lege segmenten in waar data hoort
- Voor "Label : " segmenten, retourneer ALLEEN de waarde (niet het label)
- Voor periode segmenten ("2024-Heden : "), retourneer "JAAR-JAAR\\tBedrijfsnaam"
- Voor opleiding periode segmenten ("2022-2024" of "2022-2024 : "), retourneer "STARTJAAR-EINDJAAR\\tSchool - Diploma"
- Beschikbaarheid, vervoer etc. ook invullen indien bekend
- Retourneer ALLEEN segmenten die gewijzigd moeten worden
- Retourneer NOOIT sectie header segmenten
- VUL ALLE werkervaring in - ook oudere banen! Sla geen ervaring over.
- VUL ALLE opleidingen in - ook oudere! Sla geen opleiding over.
- Als er meerdere werkervaring slots zijn, vul ze ALLEMAAL in met de beschikbare ervaringen
- Als er meerdere opleiding slots zijn, vul ze ALLEMAAL in met de beschikbare opleidingen
- Ruimte is GEEN probleem - vul alles in wat in het profiel staat""",
        "format_paragraph": "\n--- WERKERVARING FORMAAT: PARAGRAAF ---\nSchrijf werkervaring als doorlopende paragrafen (2-3 zinnen). Gebruik geen opsommingstekens.",
        "format_bullets": '\n--- WERKERVARING FORMAAT: BULLETS ---\nGebruik opsommingstekens (beginnend met "- ") voor werkervaring beschrijvingen.',
        "custom_header": "GEBRUIKER INSTRUCTIES (BELANGRIJK - volg deze aanpassingen)",
    },
}


def get_prompts(language: str) -> Dict[str, str]:
    return PROMPTS["en"] if language == "en" else PROMPTS["nl"]


def _segment_line(segment: Segment) -> str:
    if segment.is_header:
        return f"[{segment.index}] {segment.text} {HEADER_MARK}"
    return f"[{segment.index}] {segment.text}"


def build_section_grouped_document(segments: List[Segment], sections: List[SectionInfo],
                                   language: str = "nl") -> str:
    """Numbered segment listing, grouped under one banner per detected section."""
    if not sections or all(s.type == UNKNOWN for s in sections):
        return "\n".join(_segment_line(s) for s in segments)

    key = "en" if language == "en" else "nl"
    parts = []
    for section in sections:
        rule = SECTION_RULES.get(section.type, SECTION_RULES[UNKNOWN])
        name = section.type.replace("_", " ").upper()
        parts.append(f"\n=== {name} ({section.start_index}-{section.end_index}) ===")
        parts.append(f"📋 {rule[key]}")
        parts.append("")
        for segment in segments:
            if section.start_index <= segment.index <= section.end_index:
                parts.append(_segment_line(segment))
    return "\n".join(parts)


# ============================================================================
# Profile / job summaries
# ============================================================================

def build_profile_summary(profile: ParsedLinkedIn, language: str = "nl",
                          custom_values: Optional[dict] = None) -> str:
    is_en = language == "en"
    custom_values = custom_values or {}
    parts = [f"{'Name' if is_en else 'Naam'}: {profile.full_name or ('Not specified' if is_en else 'Niet opgegeven')}"]

    if profile.headline:
        parts.append(f"Headline: {profile.headline}")
    if profile.location:
        parts.append(f"{'Location' if is_en else 'Locatie'}: {profile.location}")
    if profile.email:
        parts.append(f"Email: {profile.email}")
    if profile.phone:
        parts.append(f"{'Phone' if is_en else 'Telefoon'}: {profile.phone}")
    if custom_values.get("birthDate"):
        parts.append(f"{'Date of birth' if is_en else 'Geboortedatum'}: {custom_values['birthDate']}")
    if custom_values.get("nationality"):
        parts.append(f"{'Nationality' if is_en else 'Nationaliteit'}: {custom_values['nationality']}")

    unknown = "Unknown" if is_en else "Onbekend"
    present = "Present" if is_en else "Heden"

    experience = profile.experience
    if experience:
        total = len(experience)
        parts.append(
            f"\nWORK EXPERIENCE ({total} experiences - fill ALL of them!):" if is_en
            else f"\nWERKERVARING ({total} ervaringen - vul ze ALLEMAAL in!):"
        )
        for i, exp in enumerate(experience, start=1):
            parts.append(f"\nWork experience {i} of {total}:" if is_en else f"\nWerkervaring {i} van {total}:")
            parts.append(f"   {'Position' if is_en else 'Functie'}: {exp.title or unknown}")
            parts.append(f"   {'Company' if is_en else 'Bedrijf'}: {exp.company or unknown}")
            parts.append(f"   {'Start date' if is_en else 'Startdatum'}: {exp.start_date or unknown}")
            parts.append(f"   {'End date' if is_en else 'Einddatum'}: {exp.end_date or present}")
            if exp.description:
                parts.append(f"   {'Tasks' if is_en else 'Werkzaamheden'}: {exp.description[:800]}")
        parts.append(
            f"\nTOTAL: {total} work experiences. Fill ALL {total}!" if is_en
            else f"\nTOTAAL: {total} werkervaringen. Vul ALLE {total} in!"
        )

    education = profile.education
    if education:
        parts.append(
            "\nEDUCATION (use EXACTLY this data, do NOT invent other years or education):" if is_en
            else "\nOPLEIDING (gebruik EXACT deze gegevens, verzin GEEN andere jaren of opleidingen):"
        )
        for i, edu in enumerate(education, start=1):
            parts.append(f"\n{'Education' if is_en else 'Opleiding'} {i}:")
            parts.append(f"   School: {edu.school or unknown}")
            parts.append(f"   {'Degree/Level' if is_en else 'Diploma/Niveau'}: {edu.degree or unknown}")
            parts.append(f"   {'Field of study' if is_en else 'Richting'}: {edu.field_of_study or unknown}")
            parts.append(f"   {'Start year' if is_en else 'Startjaar'}: {edu.start_year or unknown}")
            parts.append(f"   {'End year' if is_en else 'Eindjaar'}: {edu.end_year or unknown}")
        parts.append(
            f"\nIMPORTANT: There are EXACTLY {len(education)} educations. Fill no more or less!" if is_en
            else f"\nBELANGRIJK: Er zijn PRECIES {len(education)} opleidingen. Vul niet meer of minder in!"
        )

    if profile.skills:
        parts.append(f"\n{'SKILLS' if is_en else 'VAARDIGHEDEN'}:")
        parts.append(", ".join(s.name for s in profile.skills[:20]))

    return "\n".join(parts)


def build_job_summary(job: JobVacancy, language: str = "nl") -> str:
    is_en = language == "en"
    parts = [f"{'Job title' if is_en else 'Functietitel'}: {job.title}"]
    if job.company:
        parts.append(f"{'Company' if is_en else 'Bedrijf'}: {job.company}")
    if job.requirements:
        parts.append(f"{'Requirements' if is_en else 'Vereisten'}: {', '.join(job.requirements)}")
    if job.keywords:
        parts.append(f"Keywords: {', '.join(job.keywords)}")
    return "\n".join(parts)


def build_fit_summary(fit: Optional[FitAnalysis], language: str = "nl") -> str:
    """Matched skills and strengths from a fit analysis, for the model to lean on."""
    if fit is None:
        return ""
    is_en = language == "en"
    parts = [
        "\n--- FIT ANALYSIS (use this to optimize content) ---" if is_en
        else "\n--- FIT ANALYSE (gebruik dit om content te optimaliseren) ---"
    ]

    if fit.skill_match.matched:
        skills = ", ".join(fit.skill_match.matched[:5])
        parts.append(
            f"EMPHASIZE these matched skills in descriptions: {skills}" if is_en
            else f"BENADRUK deze matchende skills in beschrijvingen: {skills}"
        )
    if fit.strengths:
        strengths = "; ".join(s.message for s in fit.strengths[:3])
        parts.append(
            f"KEY STRENGTHS to highlight: {strengths}" if is_en
            else f"STERKE PUNTEN om uit te lichten: {strengths}"
        )
    if fit.skill_match.bonus:
        bonus = ", ".join(fit.skill_match.bonus[:3])
        parts.append(
            f"BONUS skills that add value: {bonus}" if is_en
            else f"BONUS skills die waarde toevoegen: {bonus}"
        )
    if fit.verdict in ("challenging", "unlikely"):
        parts.append(
            "NOTE: Fit is moderate - emphasize transferable skills and learning ability" if is_en
            else "LET OP: Fit is matig - benadruk overdraagbare skills en leervermogen"
        )
    return "\n".join(parts)


def build_fill_prompts(segments: List[Segment], sections: List[SectionInfo], profile: ParsedLinkedIn,
                       job: Optional[JobVacancy] = None, language: str = "nl",
                       description_format: str = "bullets", custom_instructions: Optional[str] = None,
                       custom_values: Optional[dict] = None,
                       fit_analysis: Optional[FitAnalysis] = None):
    """(system prompt, user prompt) for one segment fill request."""
    prompts = get_prompts(language)
    key = "en" if language == "en" else "nl"

    system = prompts["system"]
    if any(s.type != UNKNOWN for s in sections):
        system += SECTION_RULES_TEXT[key]

    document = build_section_grouped_document(segments, sections, language)
    profile_summary = build_profile_summary(profile, language, custom_values)
    job_part = f"\n{prompts['job_header']}:\n{build_job_summary(job, language)}" if job else ""
    fit_part = build_fit_summary(fit_analysis, language)
    format_part = prompts["format_paragraph"] if description_format == "paragraph" else prompts["format_bullets"]
    custom_part = f"\n--- {prompts['custom_header']} ---\n{custom_instructions}\n" if custom_instructions else ""

    user = (
        f"{prompts['template_header']}:\n{document}\n\n"
        f"{prompts['profile_header']}:\n{profile_summary}\n"
        f"{job_part}{fit_part}{format_part}{custom_part}\n\n"
        f"{prompts['instructions']}"
    )
    return system, user


# ============================================================================
# Model answer
# ============================================================================

class SegmentFill(CamelModel):
    index: int
    value: str


class IndexedFill(CamelModel):
    filled_segments: List[SegmentFill] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


@dataclass
class FillPlan:
    filled_segments: Dict[int, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


def postprocess_fills(fills: Dict[int, str], segments: List[Segment],
                      rules: Optional[DocxRules] = None) -> FillPlan:
    """
    Clean the model's answer: repeated labels and leading colons are
    stripped, header segments dropped, and special-notes values that look
    like work experience are removed with a warning.
    """
    rules = rules or load_rules()
    by_index = {s.index: s for s in segments}
    result: Dict[int, str] = {}
    unknown: List[int] = []

    for index, value in fills.items():
        segment = by_index.get(index)
        if segment is None:
            unknown.append(index)
            continue
        if segment.is_header:
            continue

        label = rules.label.match(segment.text)
        if label:
            prefix = re.compile(rf"^{re.escape(label.group(1).strip())}\s*:\s*", re.IGNORECASE)
            if prefix.match(value):
                value = prefix.sub("", value, count=1).strip()

        if re.match(r"^:\s", segment.text) and value.startswith(":"):
            value = re.sub(r"^:\s*", "", value).strip()

        result[index] = value

    removed = 0
    for index in list(result):
        value = result[index]
        if by_index[index].section != SPECIAL_NOTES or not value:
            continue
        if any(p.search(value) for p in rules.special_notes_rejections):
            logger.warning(f"Removed work experience content from special_notes: \"{value[:50]}...\"")
            del result[index]
            removed += 1

    if unknown:
        logger.debug(f"Ignored fills for segment(s) that were not offered to the model: {sorted(unknown)}")

    warnings = []
    if removed:
        warnings.append(
            f"Removed {removed} segment(s) with misplaced work experience content from special_notes section."
        )
    return FillPlan(filled_segments=result, warnings=warnings)


async def fill_segments_with_ai(
    segments: List[Segment],
    sections: List[SectionInfo],
    profile: ParsedLinkedIn,
    credentials: AICredentials,
    job: Optional[JobVacancy] = None,
    language: str = "nl",
    description_format: str = "bullets",
    custom_instructions: Optional[str] = None,
    custom_values: Optional[dict] = None,
    fit_analysis: Optional[FitAnalysis] = None,
) -> FillPlan:
    """Ask the model for segment values and return the cleaned plan."""
    system, prompt = build_fill_prompts(
        segments, sections, profile, job, language,
        description_format, custom_instructions, custom_values, fit_analysis,
    )

    raw, usage = await with_retry(
        lambda: generate_json(credentials, system, prompt, temperature=FILL_TEMPERATURE)
    )
    try:
        answer = IndexedFill.model_validate(raw)
    except ValidationError as e:
        raise AIResponseError("AI response did not match the segment fill format", details=str(e))

    logger.info(
        f"AI filled {len(answer.filled_segments)} segment(s) "
        f"({usage.prompt_tokens} prompt / {usage.completion_tokens} completion tokens)"
    )
    fills = {item.index: item.value for item in answer.filled_segments}
    plan = postprocess_fills(fills, segments)
    plan.warnings = list(answer.warnings) + plan.warnings
    return plan
