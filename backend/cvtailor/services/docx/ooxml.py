"""
Small WordprocessingML object model on top of python-docx's oxml layer.

Parts are parsed into lxml trees; every edit is an element mutation so
edits never invalidate each other.
"""
import io
import re
import zipfile
from copy import deepcopy
from typing import Dict, Iterable, List, Optional

from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import qn
from lxml import etree

from ...exceptions import TemplateStructureError

DOCUMENT_PART = "word/document.xml"
HEADER_FOOTER_PART = re.compile(r"^word/(header|footer)\d*\.xml$")

MISSING_DOCUMENT_MESSAGE = (
    "Invalid DOCX file: missing word/document.xml. "
    "Note: Only .docx files are supported, not .doc (Word 97-2003) files."
)

# Child order of <w:pPr> in the WordprocessingML schema
PPR_ORDER = [
    "w:pStyle", "w:keepNext", "w:keepLines", "w:pageBreakBefore", "w:framePr",
    "w:widowControl", "w:numPr", "w:suppressLineNumbers", "w:pBdr", "w:shd",
    "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap", "w:overflowPunct",
    "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN", "w:bidi", "w:adjustRightInd",
    "w:snapToGrid", "w:spacing", "w:ind", "w:contextualSpacing", "w:mirrorIndents",
    "w:suppressOverlap", "w:jc", "w:textDirection", "w:textAlignment",
    "w:textboxTightWrap", "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr",
    "w:sectPr", "w:pPrChange",
]
_PPR_RANK = {qn(tag): i for i, tag in enumerate(PPR_ORDER)}

XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"


# ============================================================================
# Package I/O
# ============================================================================

class DocxPackage:
    """A DOCX zip held in memory as an ordered mapping of part name to bytes."""

    def __init__(self, parts: Dict[str, bytes], infos: Dict[str, zipfile.ZipInfo]):
        self.parts = parts
        self._infos = infos

    @classmethod
    def from_bytes(cls, data: bytes) -> "DocxPackage":
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile:
            raise TemplateStructureError(MISSING_DOCUMENT_MESSAGE)
        with archive:
            parts = {}
            infos = {}
            for info in archive.infolist():
                parts[info.filename] = archive.read(info.filename)
                infos[info.filename] = info
        if DOCUMENT_PART not in parts:
            raise TemplateStructureError(MISSING_DOCUMENT_MESSAGE)
        return cls(parts, infos)

    def header_footer_parts(self) -> List[str]:
        return [name for name in self.parts if HEADER_FOOTER_PART.match(name)]

    def read_xml(self, name: str):
        return parse_xml(self.parts[name])

    def write_xml(self, name: str, root) -> None:
        self.parts[name] = serialize(root)

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        # Part order is kept so [Content_Types].xml stays the first entry
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for name, content in self.parts.items():
                info = self._infos.get(name)
                if info is not None:
                    target = zipfile.ZipInfo(name, date_time=info.date_time)
                    target.compress_type = zipfile.ZIP_DEFLATED
                    target.external_attr = info.external_attr
                    archive.writestr(target, content)
                else:
                    archive.writestr(name, content)
        return buffer.getvalue()


def serialize(root) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


# ============================================================================
# Tree navigation
# ============================================================================

def enclosing_paragraph(element):
    """Nearest <w:p> ancestor, or None for text outside paragraphs."""
    for ancestor in element.iterancestors(qn("w:p")):
        return ancestor
    return None


def text_elements(paragraph) -> List:
    """<w:t> elements owned by this paragraph (not by nested text-box paragraphs)."""
    return [t for t in paragraph.iter(qn("w:t")) if enclosing_paragraph(t) is paragraph]


def runs(paragraph) -> List:
    return [r for r in paragraph.iter(qn("w:r")) if enclosing_paragraph(r) is paragraph]


def paragraph_text(paragraph) -> str:
    return "".join(t.text or "" for t in text_elements(paragraph))


def paragraph_plain_text(paragraph) -> str:
    """Visible text with run tabs rendered as \\t."""
    parts = []
    for run in runs(paragraph):
        for child in run:
            if child.tag == qn("w:t"):
                parts.append(child.text or "")
            elif child.tag == qn("w:tab"):
                parts.append("\t")
    return "".join(parts)


def run_of(text_element):
    parent = text_element.getparent()
    return parent if parent is not None and parent.tag == qn("w:r") else None


def run_rpr(run) -> Optional[object]:
    if run is None:
        return None
    return run.find(qn("w:rPr"))


def first_run_tab(paragraph):
    """The first run-level <w:tab/> (tab stops inside w:pPr do not count)."""
    for run in runs(paragraph):
        tab = run.find(qn("w:tab"))
        if tab is not None:
            return tab
    return None


def has_run_tab(paragraph) -> bool:
    return first_run_tab(paragraph) is not None


def precedes(a, b, paragraph) -> bool:
    """True when element a comes before element b in document order."""
    for element in paragraph.iter():
        if element is a:
            return True
        if element is b:
            return False
    return False


# ============================================================================
# Paragraph properties
# ============================================================================

def get_ppr(paragraph):
    return paragraph.find(qn("w:pPr"))


def ensure_ppr(paragraph):
    ppr = get_ppr(paragraph)
    if ppr is None:
        ppr = OxmlElement("w:pPr")
        paragraph.insert(0, ppr)
    return ppr


def set_ppr_child(ppr, child) -> None:
    """Replace the same-tag child of w:pPr, or insert it in schema order."""
    existing = ppr.find(child.tag)
    if existing is not None:
        ppr.replace(existing, child)
        return
    rank = _PPR_RANK.get(child.tag, len(PPR_ORDER))
    for index, sibling in enumerate(ppr):
        if _PPR_RANK.get(sibling.tag, len(PPR_ORDER)) > rank:
            ppr.insert(index, child)
            return
    ppr.append(child)


def tab_stop_position(paragraph) -> Optional[int]:
    ppr = get_ppr(paragraph)
    if ppr is None:
        return None
    tab = ppr.find(f"{qn('w:tabs')}/{qn('w:tab')}")
    if tab is None:
        return None
    try:
        return int(tab.get(qn("w:pos")))
    except (TypeError, ValueError):
        return None


def make_tabs(position: int):
    tabs = OxmlElement("w:tabs")
    tab = OxmlElement("w:tab")
    tab.set(qn("w:val"), "left")
    tab.set(qn("w:pos"), str(position))
    tabs.append(tab)
    return tabs


def make_ind(left: int, hanging: Optional[int] = None):
    ind = OxmlElement("w:ind")
    ind.set(qn("w:left"), str(left))
    if hanging is not None:
        ind.set(qn("w:hanging"), str(hanging))
    return ind


def make_spacing_before(before: int):
    spacing = OxmlElement("w:spacing")
    spacing.set(qn("w:before"), str(before))
    return spacing


def style_only_ppr(paragraph, *children):
    """A fresh w:pPr carrying only the paragraph style and the given children."""
    ppr = OxmlElement("w:pPr")
    source = get_ppr(paragraph)
    if source is not None:
        style = source.find(qn("w:pStyle"))
        if style is not None:
            ppr.append(deepcopy(style))
    for child in children:
        set_ppr_child(ppr, child)
    return ppr


# ============================================================================
# Building and replacing content
# ============================================================================

def set_text(text_element, value: str) -> None:
    text_element.text = value
    if value != value.strip() or "  " in value:
        text_element.set(XML_SPACE, "preserve")


def make_run(text: str, rpr=None):
    run = OxmlElement("w:r")
    if rpr is not None:
        run.append(deepcopy(rpr))
    t = OxmlElement("w:t")
    t.set(XML_SPACE, "preserve")
    t.text = text
    run.append(t)
    return run


def make_tab_run(rpr=None):
    run = OxmlElement("w:r")
    if rpr is not None:
        run.append(deepcopy(rpr))
    run.append(OxmlElement("w:tab"))
    return run


def make_paragraph(ppr=None, content: Iterable = (), attributes: Optional[dict] = None):
    paragraph = OxmlElement("w:p")
    for key, value in (attributes or {}).items():
        paragraph.set(key, value)
    if ppr is not None:
        paragraph.append(ppr)
    for run in content:
        paragraph.append(run)
    return paragraph


def replace_paragraph(old, new_paragraphs: List) -> None:
    """Put new_paragraphs where old was, in order."""
    anchor = old
    for paragraph in new_paragraphs:
        anchor.addnext(paragraph)
        anchor = paragraph
    old.getparent().remove(old)


def remove_paragraph(paragraph) -> None:
    """Remove a paragraph; a table cell's last paragraph is emptied instead."""
    parent = paragraph.getparent()
    if parent is None:
        return
    if parent.tag == qn("w:tc") and len(parent.findall(qn("w:p"))) == 1:
        for child in list(paragraph):
            if child.tag != qn("w:pPr"):
                paragraph.remove(child)
        return
    parent.remove(paragraph)
