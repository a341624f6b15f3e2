"""
Prompt construction for CV generation, profile enrichment, LinkedIn export,
vacancy parsing, fit analysis and motivation letters.

Every builder is a pure function of its inputs. Each returns a (system, user)
pair; the user prompt ends with the JSON shape the model must answer with.
"""
from datetime import date
from typing import List, Optional, Tuple

from ..schemas.cv import MotivationLetterSections
from ..schemas.design_tokens import CVStyleConfig
from ..schemas.profile import JobVacancy, ParsedLinkedIn


# ============================================================================
# Shared policy text
# ============================================================================

HONESTY_POLICY = {
    "en": """## Honesty Policy - NON-NEGOTIABLE:
- Never invent employers, job titles, dates, degrees, schools, certifications or metrics
- Only use numbers, percentages and amounts that appear in the profile data
- When information is missing, leave it out rather than making something up
- Reframe and emphasize real experience; never add experience the candidate does not have
- Do not inflate seniority or claim specializations that the profile does not support""",
    "nl": """## Eerlijkheidsbeleid - NIET ONDERHANDELBAAR:
- Verzin nooit werkgevers, functietitels, datums, diploma's, scholen, certificaten of cijfers
- Gebruik alleen getallen, percentages en bedragen die in de profielgegevens staan
- Als informatie ontbreekt, laat het dan weg in plaats van iets te verzinnen
- Herformuleer en benadruk echte ervaring; voeg nooit ervaring toe die de kandidaat niet heeft
- Blaas senioriteit niet op en claim geen specialisaties die het profiel niet onderbouwt""",
}

LANGUAGE_INSTRUCTIONS = {
    "en": {
        "intro": "Generate the CV content in English.",
        "output_note": "All text content (summary, highlights, skills) must be in English.",
    },
    "nl": {
        "intro": "Genereer de CV-inhoud in het Nederlands.",
        "output_note": (
            "Alle tekstinhoud (samenvatting, highlights, vaardigheden) moet in het Nederlands zijn. "
            "Gebruik professionele Nederlandse zakelijke taal. Gebruik Nederlandse werkwoorden zoals "
            "'Geleid', 'Ontwikkeld', 'Gerealiseerd', 'Geïmplementeerd', 'Geoptimaliseerd', 'Verhoogd', "
            "'Gereduceerd', 'Gecoördineerd'."
        ),
    },
}

SYSTEM_PROMPTS = {
    "cv": (
        "You are an expert CV writer and career coach. You write truthful, ATS-friendly CV "
        "content tailored to a target job and always answer with valid JSON."
    ),
    "enrich": (
        "Je bent een professionele CV-assistent. Je verwerkt nieuwe informatie van de gebruiker "
        "in een bestaand profiel en antwoordt altijd met geldige JSON."
    ),
    "linkedin": (
        "Je bent een expert LinkedIn profiel schrijver en career coach. "
        "Je antwoordt altijd met geldige JSON."
    ),
    "job": (
        "Je bent een expert in het analyseren van vacatureteksten. "
        "Je antwoordt altijd met geldige JSON."
    ),
    "fit": (
        "You are an expert HR analyst and career coach who judges candidate-vacancy fit "
        "honestly and always answers with valid JSON."
    ),
    "motivation": (
        "You are an expert cover letter writer who creates compelling, personalized motivation "
        "letters and always answers with valid JSON."
    ),
}


def _language(language: Optional[str]) -> str:
    return "en" if language == "en" else "nl"


# ============================================================================
# Industry guidance
# ============================================================================

INDUSTRY_GUIDANCE = [
    (("tech", "software", "it"), """**Industry Focus (Technology):**
- Emphasize technical skills, programming languages, frameworks and tools
- Highlight scalability, performance improvements and system architecture
- Mention agile/scrum methodologies and collaboration with cross-functional teams
- Quantify impact where the profile provides numbers: users served, uptime, response times"""),
    (("finance", "bank", "accounting"), """**Industry Focus (Finance/Banking):**
- Emphasize accuracy, compliance and risk management
- Highlight financial analysis, reporting and regulatory knowledge
- Mention relevant certifications (CFA, ACCA, RA) only when present in the profile
- Show attention to detail and analytical thinking"""),
    (("health", "medical", "pharma"), """**Industry Focus (Healthcare/Medical):**
- Emphasize patient care, safety and quality standards
- Highlight compliance with healthcare regulations
- Mention clinical experience and relevant certifications present in the profile
- Show empathy, communication and teamwork skills"""),
    (("consult",), """**Industry Focus (Consulting):**
- Emphasize problem-solving and analytical skills
- Highlight client management and stakeholder communication
- Show business impact and recommendations that were implemented
- Mention project variety and adaptability"""),
    (("marketing", "creative", "design"), """**Industry Focus (Marketing/Creative):**
- Emphasize creativity, campaigns and brand development
- Highlight digital marketing, social media and content strategy
- Show measurable results such as engagement or conversion when the profile states them
- Mention tools and platforms used"""),
    (("retail", "sales"), """**Industry Focus (Retail/Sales):**
- Emphasize sales targets, revenue and customer satisfaction
- Highlight customer relationship management
- Show achievements against targets that the profile actually mentions
- Mention team leadership and training experience"""),
]


def get_industry_guidance(industry: Optional[str]) -> str:
    """Guidance block for the job's industry, matched case-insensitively by keyword."""
    if not industry:
        return ""
    lowered = industry.lower()
    for keywords, guidance in INDUSTRY_GUIDANCE:
        if any(keyword in lowered for keyword in keywords):
            return guidance
    return f"""**Industry Focus ({industry}):**
- Tailor the language and achievements to {industry} industry standards
- Emphasize skills and experiences most relevant to this sector
- Use industry-specific terminology where appropriate"""


# ============================================================================
# CV generation
# ============================================================================

CV_JSON_SHAPE = """{
  "headline": "string (only when a target job is given, otherwise empty string)",
  "summary": "string",
  "experience": [
    {
      "title": "string",
      "company": "string",
      "location": "string or null",
      "period": "string, e.g. 'Jan 2020 - Present'",
      "highlights": ["string"],
      "relevanceScore": "number between 0 and 100, or null"
    }
  ],
  "education": [
    {"degree": "string", "institution": "string", "year": "string", "details": "string or null"}
  ],
  "skills": {"technical": ["string"], "soft": ["string"]},
  "languages": [{"language": "string", "level": "string"}],
  "certifications": ["string"]
}"""


def _profile_lines(profile: ParsedLinkedIn) -> List[str]:
    lines = [
        "## LinkedIn Profile Data:",
        f"**Name:** {profile.full_name}",
        f"**Current Title:** {profile.headline or 'Not specified'}",
        f"**Location:** {profile.location or 'Not specified'}",
        f"**About:** {profile.about or 'Not provided'}",
        "",
        "### Experience:",
    ]
    for exp in profile.experience:
        end = "Present" if exp.is_current_role else (exp.end_date or "Present")
        lines.append(f"- **{exp.title}** at {exp.company} ({exp.start_date} - {end})")
        if exp.location:
            lines.append(f"  Location: {exp.location}")
        if exp.description:
            lines.append(f"  {exp.description}")
    if not profile.experience:
        lines.append("No experience listed")

    lines += ["", "### Education:"]
    for edu in profile.education:
        field = f" in {edu.field_of_study}" if edu.field_of_study else ""
        years = f" ({edu.start_year or ''} - {edu.end_year or ''})" if edu.start_year or edu.end_year else ""
        lines.append(f"- {edu.degree or 'Degree'}{field} at {edu.school}{years}")
    if not profile.education:
        lines.append("No education listed")

    lines += ["", "### Skills:", ", ".join(s.name for s in profile.skills) or "No skills listed"]

    if profile.languages:
        lines += ["", "### Languages:"]
        lines += [f"- {l.language}" + (f" ({l.proficiency})" if l.proficiency else "") for l in profile.languages]

    if profile.certifications:
        lines += ["", "### Certifications:"]
        lines += [f"- {c.name}" + (f" - {c.issuer}" if c.issuer else "") for c in profile.certifications]

    return lines


def _job_lines(job: JobVacancy) -> List[str]:
    top_keywords = job.keywords[:3]
    company = job.company or "the company"
    lines = [
        "## Target Job:",
        f"**Title:** {job.title}",
        f"**Company:** {job.company or 'Not specified'}",
    ]
    if job.industry:
        lines.append(f"**Industry:** {job.industry}")
    if job.location:
        lines.append(f"**Location:** {job.location}")
    if job.employment_type:
        lines.append(f"**Employment Type:** {job.employment_type}")
    lines += ["", "**Job Description:**", job.description or "Not provided", "", "**Key Requirements:**"]
    lines += [f"- {r}" for r in job.requirements] or ["- Not specified"]

    lines += [
        "",
        "## Critical Keywords from Job Posting:",
        ", ".join(job.keywords) or "None provided",
        "These keywords must appear naturally in the summary, highlights and skills where the "
        "candidate's real experience supports them.",
    ]

    guidance = get_industry_guidance(job.industry)
    if guidance:
        lines += ["", guidance]

    lines += [
        "",
        "## Strategic Matching Instructions:",
        f"1. **Headline:** Write a headline that bridges the candidate's actual background to the "
        f"{job.title} role. Do not inflate seniority and do not invent specializations.",
        f"2. **Summary:** Open with the candidate's strongest qualification for {job.title}. "
        f"Weave in {', '.join(top_keywords) or 'the key requirements'} where the profile supports it.",
        "3. **Experience Ordering:** Keep experiences in the original order, but give each a "
        "relevanceScore (0-100) for this job.",
        "4. **Highlights:** Rewrite each experience's highlights to emphasize responsibilities and "
        f"results that matter for {company}.",
        "5. **Skills:** List the job's required skills first when the candidate has them, then other "
        "relevant skills. Never add skills that are not in the profile or clearly demonstrated by it.",
        "6. **Gaps:** Where the candidate lacks a requirement, emphasize transferable experience instead "
        "of claiming the requirement.",
        "7. **Tone:** Match the tone of the job posting and industry.",
        "",
        "## ATS Optimization:",
        "- Use standard section names and plain text formatting",
        "- Use the exact wording of job keywords where they truthfully apply",
        "- Spell out abbreviations at least once",
    ]
    return lines


GENERIC_INSTRUCTIONS = [
    "## Instructions:",
    "1. Write a compelling professional summary based on the candidate's overall profile",
    "2. Rewrite each experience's highlights to emphasize impact and responsibilities",
    "3. Organize skills into technical and soft skills",
    "4. Keep every experience in its original order",
    "5. Leave the headline empty",
]

BEST_PRACTICES = """## CV Writing Best Practices - MUST FOLLOW:

**Professional Summary:**
- 3-4 sentences, written without personal pronouns ("I", "my")
- Start with the professional identity and years of experience shown in the profile
- Mention two or three core strengths and what the candidate brings to the role

**Experience Highlights (STAR method):**
- Start every bullet with a strong action verb
- Describe the situation or task briefly, then the action, then the result
- Good: "Led migration of billing platform to the cloud, cutting deployment time from days to hours"
- Poor: "Was responsible for the billing platform"

**Power words:** Led, Delivered, Built, Improved, Reduced, Launched, Negotiated, Streamlined

**Words to avoid:** "Responsible for", "Helped with", "Worked on", "Various", "Etc."

**Quantification:**
- Include numbers, percentages and amounts only when they appear in the profile
- Without numbers, describe scope instead: team size, number of clients, products, regions"""


def _length_rules(style_config: Optional[CVStyleConfig]) -> Tuple[str, str]:
    compact = style_config is not None and style_config.layout.spacing == "compact"
    if compact:
        return "2-3", "Keep bullet points concise (max 15 words each)"
    return "3-5", "Bullet points can be detailed (max 25 words each)"


def build_cv_prompt(
    profile: ParsedLinkedIn,
    job: Optional[JobVacancy] = None,
    style_config: Optional[CVStyleConfig] = None,
    language: str = "nl",
    description_format: str = "bullets",
) -> Tuple[str, str]:
    """System and user prompt for tailored CV content."""
    lang = _language(language)
    instructions = LANGUAGE_INSTRUCTIONS[lang]
    bullet_count, bullet_length = _length_rules(style_config)

    lines = [
        "## CRITICAL: Output Language",
        instructions["intro"],
        "",
        *_profile_lines(profile),
        "",
    ]
    lines += _job_lines(job) if job is not None else GENERIC_INSTRUCTIONS
    lines += ["", HONESTY_POLICY[lang], "", BEST_PRACTICES, ""]

    if description_format == "paragraph":
        format_line = (
            "Write each experience as one short paragraph: return it as a single item in "
            "\"highlights\" instead of separate bullets"
        )
    else:
        format_line = "Write each experience as separate bullet points in \"highlights\""

    lines += [
        "## Output Requirements:",
        f"- {bullet_count} highlights per experience",
        f"- {bullet_length}",
        f"- {format_line}",
        f"- {instructions['output_note']}",
        "",
        "Respond with JSON in exactly this shape:",
        CV_JSON_SHAPE,
    ]
    return SYSTEM_PROMPTS["cv"], "\n".join(lines)


# ============================================================================
# Profile enrichment
# ============================================================================

ENRICHMENT_JSON_SHAPE = """{
  "headline": "nieuwe headline of null",
  "about": "nieuwe 'over mij' tekst of null",
  "newExperience": [
    {"title": "", "company": "", "location": null, "startDate": "", "endDate": null, "description": null, "isCurrentRole": false}
  ],
  "newEducation": [
    {"school": "", "degree": null, "fieldOfStudy": null, "startYear": null, "endYear": null}
  ],
  "newSkills": [{"name": ""}],
  "newCertifications": [{"name": "", "issuer": null, "issueDate": null}],
  "changesSummary": "korte samenvatting van de wijzigingen in het Nederlands"
}"""


def build_enrichment_prompt(profile: ParsedLinkedIn, enrichment_text: str,
                            language: str = "nl") -> Tuple[str, str]:
    lang = _language(language)
    experience = "\n".join(
        f"- {e.title} bij {e.company} ({e.start_date} - {e.end_date or 'heden'})"
        for e in profile.experience
    ) or "Geen"
    education = "\n".join(
        f"- {e.degree or 'Opleiding'} bij {e.school}" for e in profile.education
    ) or "Geen"
    skills = ", ".join(s.name for s in profile.skills) or "Geen"
    certifications = ", ".join(c.name for c in profile.certifications) or "Geen"
    output_language = "Schrijf in het Nederlands" if lang == "nl" else "Write in English"

    prompt = f"""Verwerk de nieuwe informatie van de gebruiker in het bestaande profiel.

BESTAAND PROFIEL:
Naam: {profile.full_name}
Headline: {profile.headline or 'Niet ingesteld'}
Over mij: {profile.about or 'Niet ingesteld'}

Bestaande werkervaring:
{experience}

Bestaande opleidingen:
{education}

Bestaande vaardigheden: {skills}
Bestaande certificaten: {certifications}

NIEUWE INFORMATIE VAN DE GEBRUIKER:
{enrichment_text}

INSTRUCTIES:
1. Analyseer de nieuwe informatie en bepaal wat er aan het profiel moet worden toegevoegd
2. Voeg alleen NIEUWE werkervaring toe die nog niet in het profiel staat
3. Voeg alleen NIEUWE opleidingen toe die nog niet in het profiel staan
4. Voeg alleen NIEUWE vaardigheden toe die nog niet in de lijst staan
5. Voeg alleen NIEUWE certificaten toe
6. Werk de headline of 'over mij' alleen bij als de nieuwe informatie daar aanleiding toe geeft
7. Gebruik alleen informatie die de gebruiker heeft gegeven; laat velden leeg (null) als iets onbekend is
8. {output_language}

{HONESTY_POLICY[lang]}

Antwoord met JSON in precies deze vorm:
{ENRICHMENT_JSON_SHAPE}"""
    return SYSTEM_PROMPTS["enrich"], prompt


# ============================================================================
# LinkedIn export
# ============================================================================

LINKEDIN_JSON_SHAPE = """{
  "headline": "string (max 220 tekens)",
  "about": "string (500-2000 tekens)",
  "experienceDescriptions": [
    {"originalTitle": "", "originalCompany": "", "optimizedTitle": "", "description": "", "skills": [""]}
  ],
  "educationDescriptions": [{"originalSchool": "", "description": ""}],
  "topSkills": ["string"],
  "profileTips": ["string"]
}"""


def build_linkedin_export_prompt(profile: ParsedLinkedIn, language: str = "nl") -> Tuple[str, str]:
    """Prompt for LinkedIn-ready profile texts."""
    lang = _language(language)

    experience_blocks = []
    for i, exp in enumerate(profile.experience, start=1):
        end = "heden" if exp.is_current_role else (exp.end_date or "heden")
        block = [f"{i}. {exp.title} bij {exp.company}", f"   Periode: {exp.start_date} - {end}"]
        if exp.location:
            block.append(f"   Locatie: {exp.location}")
        if exp.description:
            block.append(f"   Huidige beschrijving: {exp.description}")
        experience_blocks.append("\n".join(block))

    education = "\n".join(
        f"- {e.degree or 'Opleiding'}"
        + (f" in {e.field_of_study}" if e.field_of_study else "")
        + f" bij {e.school}"
        for e in profile.education
    ) or "Geen"

    prompt = f"""Optimaliseer het volgende profiel voor LinkedIn.

PROFIEL DATA:
Naam: {profile.full_name}
Huidige headline: {profile.headline or 'Niet ingesteld'}
Locatie: {profile.location or 'Niet ingesteld'}
Over mij: {profile.about or 'Niet ingesteld'}

WERKERVARING:
{chr(10).join(experience_blocks) or 'Geen'}

OPLEIDING:
{education}

VAARDIGHEDEN: {', '.join(s.name for s in profile.skills) or 'Geen'}

CERTIFICATEN: {', '.join(c.name for c in profile.certifications) or 'Geen'}

INSTRUCTIES:
1. HEADLINE (max 220 tekens): functietitel, specialisatie en waardepropositie, met relevante zoekwoorden
2. ABOUT (500-2000 tekens): begin met een sterke hook, beschrijf daarna expertise en resultaten, en sluit af met een call-to-action
3. WERKERVARING: per functie een beschrijving volgens de CAR-methode (Challenge, Action, Result) met de relevante vaardigheden
4. OPLEIDING: per opleiding een korte beschrijving (max 500 tekens)
5. SKILLS: de top 10 vaardigheden voor dit profiel
6. PROFIEL TIPS: 3-5 concrete tips om het LinkedIn profiel te verbeteren

{HONESTY_POLICY[lang]}

{'Schrijf in het Nederlands' if lang == 'nl' else 'Write in English'}.

Antwoord met JSON in precies deze vorm:
{LINKEDIN_JSON_SHAPE}"""
    return SYSTEM_PROMPTS["linkedin"], prompt


# ============================================================================
# Job vacancy parsing
# ============================================================================

JOB_JSON_SHAPE = """{
  "title": "functietitel",
  "company": "bedrijfsnaam of null",
  "description": "korte samenvatting van de functie (max 200 woorden)",
  "requirements": ["belangrijkste vereisten (max 10)"],
  "keywords": ["skills, technologieën en trefwoorden (max 15)"],
  "industry": "sector of null",
  "location": "werklocatie of null",
  "employmentType": "fulltime/parttime/freelance of null"
}"""


def build_job_parse_prompt(raw_text: str) -> Tuple[str, str]:
    prompt = f"""Analyseer de volgende vacaturetekst en extraheer de belangrijkste informatie.

## Vacaturetekst:

{raw_text}

## Instructies:

1. **Titel**: Identificeer de exacte functietitel. Als er meerdere varianten zijn, kies de meest specifieke.
2. **Bedrijf**: Zoek de bedrijfsnaam. Dit kan aan het begin staan, in de tekst, of in een "Over ons" sectie.
3. **Beschrijving**: Maak een korte, krachtige samenvatting (max 200 woorden) van wat de functie inhoudt, de belangrijkste verantwoordelijkheden en de context/afdeling.
4. **Vereisten**: Lijst de 8-10 belangrijkste kwalificaties: jaren ervaring, diploma's, harde eisen en "nice to haves".
5. **Keywords**: Max 15 technische skills, tools, methodieken (Agile, Scrum) en genoemde soft skills.
6. **Industrie**: Leid af in welke sector het bedrijf opereert (tech, finance, healthcare, retail, etc.)
7. **Locatie**: Zoek naar de werklocatie, inclusief remote/hybrid opties
8. **Type**: Bepaal of het fulltime, parttime, freelance, of een andere vorm betreft

Wees accuraat en baseer alles op de tekst. Als informatie niet duidelijk is, geef null terug voor optionele velden.

Antwoord met JSON in precies deze vorm:
{JOB_JSON_SHAPE}"""
    return SYSTEM_PROMPTS["job"], prompt


# ============================================================================
# Fit analysis
# ============================================================================

FIT_JSON_SHAPE = """{
  "overallScore": "number 0-100 (80+ excellent, 60-79 good, 40-59 moderate, 20-39 challenging, <20 unlikely)",
  "verdict": "excellent | good | moderate | challenging | unlikely",
  "verdictExplanation": "1-2 sentences",
  "warnings": [
    {"severity": "info | warning | critical", "category": "experience | skills | education | industry | certification",
     "message": "max 10 words", "detail": "1-2 sentences"}
  ],
  "strengths": [
    {"category": "experience | skills | education | industry | certification | general",
     "message": "max 10 words", "detail": "1-2 sentences"}
  ],
  "skillMatch": {"matched": ["string"], "missing": ["string"], "bonus": ["string"], "matchPercentage": "number 0-100"},
  "experienceMatch": {"candidateYears": 0, "requiredYears": 0, "gap": "candidateYears - requiredYears", "levelMatch": true},
  "advice": "2-3 sentences of constructive, specific advice"
}"""

FIT_INSTRUCTIONS = """## ANALYSIS INSTRUCTIONS

1. **Experience:** count the years of RELEVANT experience (not total career length), compare them to the
   requirements and judge whether the level matches (junior/medior/senior/lead).
2. **Skills:** match the candidate's skills against the requirements case-insensitively, allowing synonyms.
   Name critical missing skills and the nice-to-have skills the candidate brings.
3. **Education & Certifications:** check required education and certifications.
4. **Industry Fit:** note relevant industry experience or a transition from another industry.
5. **Warnings:** CRITICAL for likely dealbreakers, WARNING for significant gaps, INFO for minor gaps.
6. **Strengths:** what makes the candidate stand out, including transferable skills.
7. **Overall Score:** 80-100 excellent, 60-79 good, 40-59 moderate, 20-39 challenging, 0-19 unlikely.
8. **Advice:** what the candidate can do to strengthen the application.

Be constructive but honest."""


def build_fit_analysis_prompt(profile: ParsedLinkedIn, job: JobVacancy) -> Tuple[str, str]:
    """Prompt that scores how well a profile fits a vacancy."""
    experience = "\n".join(
        f"- {e.title} at {e.company} ({e.start_date} - {e.end_date or 'Present'}): "
        f"{e.description or 'No description'}"
        for e in profile.experience
    ) or "No experience listed"
    education = "\n".join(
        f"- {e.degree or 'Degree'}{f' in {e.field_of_study}' if e.field_of_study else ''} "
        f"at {e.school} ({e.end_year or 'N/A'})"
        for e in profile.education
    ) or "No education listed"
    languages = ", ".join(
        f"{l.language} ({l.proficiency or 'N/A'})" for l in profile.languages
    ) or "Not specified"
    requirements = "\n".join(f"- {r}" for r in job.requirements) or "- Not specified"

    prompt = f"""Analyze how well a candidate matches a job vacancy.
Be HONEST and REALISTIC: do not sugarcoat significant gaps, but recognize genuine strengths.

## CANDIDATE PROFILE

**Name:** {profile.full_name}
**Current/Last Title:** {profile.headline or 'Not specified'}
**Location:** {profile.location or 'Not specified'}

**About/Summary:**
{profile.about or 'No summary provided'}

**Work Experience:**
{experience}

**Education:**
{education}

**Skills:**
{', '.join(s.name for s in profile.skills) or 'No skills listed'}

**Certifications:**
{', '.join(c.name for c in profile.certifications) or 'No certifications listed'}

**Languages:**
{languages}

---

## JOB VACANCY

**Title:** {job.title}
**Company:** {job.company or 'Not specified'}
**Industry:** {job.industry or 'Not specified'}
**Location:** {job.location or 'Not specified'}

**Description:**
{job.description or 'Not provided'}

**Key Requirements:**
{requirements}

**Keywords:** {', '.join(job.keywords) or 'Not specified'}

---

{FIT_INSTRUCTIONS}

Respond with JSON in exactly this shape:
{FIT_JSON_SHAPE}"""
    return SYSTEM_PROMPTS["fit"], prompt


# ============================================================================
# Motivation letter
# ============================================================================

MOTIVATION_LANGUAGE = {
    "nl": "Write the entire letter in Dutch (Nederlands). Use the formal but warm \"u\" form "
          "and professional Dutch business letter conventions.",
    "en": "Write the entire letter in English. Use a professional but personable tone "
          "and standard business letter conventions.",
}

MOTIVATION_PRINCIPLES = """KEY PRINCIPLES:
1. **Be Specific, Not Generic**: never open with "I am writing to apply for..."; show that you understand the company or role.
2. **Show, Don't Tell**: give a concrete example instead of claiming a quality.
3. **Connect Experience to Requirements**: back each key requirement with evidence from the profile.
4. **Demonstrate Company Knowledge**: mention products, values or culture where the vacancy gives them.
5. **Be Authentic**: weave in the candidate's personal motivation when it is provided.
6. **Keep It Concise**: 300-400 words in total.

STRUCTURE:
- opening: a hook that shows immediate value or connection (2-3 sentences)
- whyCompany: genuine interest in the company and role (2-3 sentences)
- whyMe: evidence-based pitch connecting experience to their needs (3-4 sentences)
- motivation: personal drive and enthusiasm (2-3 sentences)
- closing: confident call to action and availability for an interview (1-2 sentences).
  Do NOT include a greeting or sign-off such as "Kind regards"; it is added separately."""

MOTIVATION_JSON_SHAPE = """{
  "opening": "string",
  "whyCompany": "string",
  "whyMe": "string",
  "motivation": "string",
  "closing": "string"
}"""


def build_motivation_prompt(
    profile: ParsedLinkedIn,
    job: JobVacancy,
    cv_summary: str,
    language: str = "nl",
    personal_motivation: Optional[str] = None,
) -> Tuple[str, str]:
    lang = _language(language)
    system = f"{SYSTEM_PROMPTS['motivation']}\n\n{MOTIVATION_LANGUAGE[lang]}\n\n{MOTIVATION_PRINCIPLES}"

    experience = "\n".join(
        f"- {e.title} at {e.company}" + (f": {e.description[:150]}..." if e.description else "")
        for e in profile.experience[:3]
    ) or "- None listed"

    lines = ["Generate a motivation letter for:", "", "CANDIDATE:", f"Name: {profile.full_name}"]
    if profile.headline:
        lines.append(f"Current Role: {profile.headline}")
    if profile.location:
        lines.append(f"Location: {profile.location}")
    if profile.about:
        lines += ["", "ABOUT:", profile.about[:500]]
    lines += [
        "",
        "KEY EXPERIENCE:",
        experience,
        "",
        f"KEY SKILLS: {', '.join(s.name for s in profile.skills[:10])}",
        "",
        "---",
        "",
        "TARGET JOB:",
        f"Position: {job.title}",
    ]
    if job.company:
        lines.append(f"Company: {job.company}")
    if job.industry:
        lines.append(f"Industry: {job.industry}")
    if job.location:
        lines.append(f"Location: {job.location}")
    lines += [
        "",
        "JOB DESCRIPTION:",
        job.description[:1000] or "Not provided",
        "",
        "REQUIREMENTS:",
        *[f"- {r}" for r in job.requirements[:8]],
        "",
        f"KEY KEYWORDS: {', '.join(job.keywords[:10])}",
        "",
        "---",
        "",
        "CV SUMMARY (for consistency):",
        cv_summary,
    ]

    if personal_motivation and personal_motivation.strip():
        lines += [
            "",
            "---",
            "",
            "PERSONAL MOTIVATION (from the candidate - IMPORTANT, incorporate this):",
            f"\"{personal_motivation.strip()}\"",
            "",
            "Weave these sentiments naturally into the letter, especially in the motivation paragraph.",
        ]

    lines += [
        "",
        "---",
        "",
        HONESTY_POLICY[lang],
        "",
        "Respond with JSON in exactly this shape:",
        MOTIVATION_JSON_SHAPE,
    ]
    return system, "\n".join(lines)


MONTHS = {
    "nl": ["januari", "februari", "maart", "april", "mei", "juni", "juli",
           "augustus", "september", "oktober", "november", "december"],
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
}


def format_letter_date(day: date, language: str = "nl") -> str:
    month = MONTHS[_language(language)][day.month - 1]
    if _language(language) == "nl":
        return f"{day.day} {month} {day.year}"
    return f"{month} {day.day}, {day.year}"


def format_motivation_letter(
    sections: MotivationLetterSections,
    full_name: str,
    job_title: str,
    company: Optional[str],
    language: str = "nl",
    today: Optional[date] = None,
) -> str:
    """The complete letter: date, subject, greeting, the five paragraphs and sign-off."""
    is_nl = _language(language) == "nl"
    subject = f"{'Betreft' if is_nl else 'Re'}: {'Sollicitatie' if is_nl else 'Application'} {job_title}"
    if company:
        subject += f" - {company}"

    blocks = [
        format_letter_date(today or date.today(), language),
        subject,
        "Geachte heer/mevrouw," if is_nl else "Dear Hiring Manager,",
        sections.opening,
        sections.why_company,
        sections.why_me,
        sections.motivation,
        sections.closing,
        "Met vriendelijke groet," if is_nl else "Kind regards,",
        full_name,
    ]
    return "\n\n".join(blocks)
