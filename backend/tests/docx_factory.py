"""
Minimal DOCX packages for tests: a paragraph is a list of runs, where TAB
stands for a run holding a single <w:tab/>.
"""
import io
import zipfile
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

from docx.oxml import parse_xml
from lxml import etree

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
TAB = object()

CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    '</Types>'
)

ROOT_RELS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" '
    'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="word/document.xml"/>'
    '</Relationships>'
)


def _run(content) -> str:
    if content is TAB:
        return "<w:r><w:tab/></w:r>"
    return f'<w:r><w:t xml:space="preserve">{escape(content)}</w:t></w:r>'


def paragraph_xml(*runs) -> str:
    return "<w:p>" + "".join(_run(r) for r in runs) + "</w:p>"


def part_xml(paragraphs: List[tuple], root: str = "document") -> str:
    body = "".join(paragraph_xml(*p) for p in paragraphs)
    if root == "document":
        return (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f'<w:document xmlns:w="{W_NS}"><w:body>{body}</w:body></w:document>'
        )
    tag = "w:hdr" if root == "header" else "w:ftr"
    return f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?><{tag} xmlns:w="{W_NS}">{body}</{tag}>'


def parse_part(paragraphs: List[tuple]):
    return parse_xml(part_xml(paragraphs).encode("utf-8"))


def build_docx(paragraphs: List[tuple], extra_parts: Optional[Dict[str, str]] = None) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", CONTENT_TYPES)
        archive.writestr("_rels/.rels", ROOT_RELS)
        archive.writestr("word/document.xml", part_xml(paragraphs))
        for name, xml in (extra_parts or {}).items():
            archive.writestr(name, xml)
    return buffer.getvalue()


def paragraph_texts(root) -> List[str]:
    """Text of every body paragraph, run tabs rendered as \\t."""
    texts = []
    for p in root.iter(f"{{{W_NS}}}p"):
        parts = []
        for element in p.iter(f"{{{W_NS}}}t", f"{{{W_NS}}}tab"):
            if element.getparent().tag != f"{{{W_NS}}}r":
                continue
            parts.append("\t" if element.tag == f"{{{W_NS}}}tab" else (element.text or ""))
        texts.append("".join(parts))
    return texts


def docx_paragraph_texts(docx_bytes: bytes, part: str = "word/document.xml") -> List[str]:
    with zipfile.ZipFile(io.BytesIO(docx_bytes)) as archive:
        root = etree.fromstring(archive.read(part))
    return paragraph_texts(root)
