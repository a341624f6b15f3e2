import json

import fitz

from cvtailor.schemas.cv import TokenUsage

from docx_factory import TAB, build_docx, docx_paragraph_texts

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


async def upload(client, headers, uid, content, file_name="cv.docx", content_type=DOCX_TYPE, name="Mijn CV"):
    return await client.post(
        "/api/templates",
        files={"file": (file_name, content, content_type)},
        data={"name": name},
        headers=headers(uid),
    )


def blank_pdf() -> bytes:
    doc = fitz.open()
    doc.new_page()
    try:
        return doc.tobytes()
    finally:
        doc.close()


async def test_upload_docx_detects_placeholders(client, make_user, headers, uploads_dir):
    uid = await make_user()
    template = build_docx([("Naam: {{naam}}",), ("E-mail: {{email}}",)])

    response = await upload(client, headers, uid, template)

    assert response.status_code == 200, response.text
    body = response.json()["template"]
    assert body["fileType"] == "docx"
    assert body["autoAnalyzed"] is True
    assert body["pageCount"] == 1
    assert [p["originalText"] for p in body["placeholders"]] == ["{{naam}}", "{{email}}"]
    assert body["placeholders"][0]["mapping"] == {"type": "personal", "field": "fullName"}
    assert body["storageUrl"].startswith(f"local://templates/{uid}/")
    assert len(list((uploads_dir / "templates" / uid).iterdir())) == 1

    listing = (await client.get("/api/templates", headers=headers(uid))).json()
    assert [t["id"] for t in listing["templates"]] == [body["id"]]


async def test_upload_rejects_unsupported_files(client, make_user, headers):
    uid = await make_user()

    response = await upload(client, headers, uid, b"old", "cv.doc", "application/msword")
    assert response.status_code == 400
    assert ".doc" in response.json()["error"]

    response = await upload(client, headers, uid, b"hello", "cv.txt", "text/plain")
    assert response.json() == {"error": "Only PDF and DOCX files are allowed"}

    response = await upload(client, headers, uid, b"not a zip", "cv.docx")
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid DOCX file:")

    response = await upload(client, headers, uid, b"not a pdf", "cv.pdf", "application/pdf")
    assert response.json() == {"error": "Invalid PDF file"}


async def test_fill_placeholder_docx(client, make_user, headers, profile_data):
    uid = await make_user(free=1)
    template = build_docx([("Naam: {{naam}}",), ("Telefoon: [TELEFOON]",)])
    template_id = (await upload(client, headers, uid, template)).json()["template"]["id"]

    response = await client.post(
        f"/api/templates/{template_id}/fill",
        json={"profileData": profile_data},
        headers=headers(uid),
    )

    assert response.status_code == 200, response.text
    assert response.headers["x-fill-mode"] == "placeholder"
    assert response.headers["content-disposition"] == 'attachment; filename="filled-cv.docx"'
    assert docx_paragraph_texts(response.content) == ["Naam: Jan de Vries", "Telefoon: 0612345678"]

    credits = (await client.get("/api/credits", headers=headers(uid))).json()
    assert credits["total"] == 0

    response = await client.post(
        f"/api/templates/{template_id}/fill",
        json={"profileData": profile_data},
        headers=headers(uid),
    )
    assert response.status_code == 402


async def test_fill_with_ai_reports_warnings(client, make_user, headers, profile_data, monkeypatch):
    uid = await make_user(api_key="sk-test")
    template = build_docx([("Werkervaring",), ("Developer bij Acme",)])
    template_id = (await upload(client, headers, uid, template)).json()["template"]["id"]

    async def generate_json(credentials, system, prompt, temperature=0.7):
        assert credentials.api_key == "sk-test"
        return {"filledSegments": [{"index": 1, "value": "Lead Engineer bij Acme"}]}, TokenUsage()

    monkeypatch.setattr("cvtailor.services.docx.ai_fill.generate_json", generate_json)

    response = await client.post(
        f"/api/templates/{template_id}/fill",
        json={"profileData": profile_data},
        headers=headers(uid),
    )

    assert response.status_code == 200, response.text
    assert response.headers["x-fill-mode"] == "ai"
    [warning] = json.loads(response.headers["x-fill-warnings"])
    assert "work experience" in warning
    assert docx_paragraph_texts(response.content)[1] == "Lead Engineer bij Acme"


async def test_fill_without_placeholders_or_key(client, make_user, headers, profile_data):
    uid = await make_user()
    template = build_docx([("Werkervaring",), ("2018 - 2020", TAB, "Acme")])
    template_id = (await upload(client, headers, uid, template)).json()["template"]["id"]

    response = await client.post(
        f"/api/templates/{template_id}/fill",
        json={"profileData": profile_data},
        headers=headers(uid),
    )
    assert response.status_code == 400
    assert "AI mode is required" in response.json()["error"]

    credits = (await client.get("/api/credits", headers=headers(uid))).json()
    assert credits["free"] == 5


async def test_fill_requires_profile_data(client, make_user, headers):
    uid = await make_user()
    template_id = (await upload(client, headers, uid, build_docx([("{{naam}}",)]))).json()["template"]["id"]
    response = await client.post(f"/api/templates/{template_id}/fill", json={}, headers=headers(uid))
    assert response.json() == {"error": "Profile data is required"}


async def test_pdf_template_fields_and_fill(client, make_user, headers, profile_data):
    uid = await make_user()
    response = await upload(client, headers, uid, blank_pdf(), "cv.pdf", "application/pdf")
    template = response.json()["template"]
    assert template["fileType"] == "pdf"
    assert template["pageCount"] == 1

    response = await client.post(
        f"/api/templates/{template['id']}/fill",
        json={"profileData": profile_data},
        headers=headers(uid),
    )
    assert response.status_code == 400

    fields = [{
        "id": "f1", "name": "Naam", "page": 0, "x": 72, "y": 700, "fontSize": 12,
        "mapping": {"type": "personal", "field": "fullName"},
    }]
    response = await client.put(
        f"/api/templates/{template['id']}/fields", json={"fields": fields}, headers=headers(uid)
    )
    assert response.json()["template"]["fields"][0]["mapping"]["field"] == "fullName"

    response = await client.post(
        f"/api/templates/{template['id']}/fill",
        json={"profileData": profile_data},
        headers=headers(uid),
    )
    assert response.status_code == 200, response.text
    assert response.headers["content-type"] == "application/pdf"
    with fitz.open(stream=response.content, filetype="pdf") as doc:
        assert "Jan de Vries" in doc[0].get_text()

    analysis = (await client.post(f"/api/templates/{template['id']}/analyze", headers=headers(uid))).json()
    assert analysis == {"success": True, "formFields": [], "pageCount": 1}


async def test_delete_template_removes_file(client, make_user, headers, uploads_dir):
    uid = await make_user()
    template_id = (await upload(client, headers, uid, build_docx([("{{naam}}",)]))).json()["template"]["id"]

    response = await client.delete(f"/api/templates/{template_id}", headers=headers(uid))
    assert response.json() == {"success": True}
    assert list((uploads_dir / "templates" / uid).iterdir()) == []

    response = await client.get(f"/api/templates/{template_id}", headers=headers(uid))
    assert response.json() == {"error": "Template not found"}
