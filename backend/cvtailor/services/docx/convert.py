"""
DOCX -> PDF conversion through a headless LibreOffice.
"""
import asyncio
import logging
import os
import shutil
import tempfile
from typing import Tuple

import aiofiles

from ...config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MEDIA_TYPE = "application/pdf"


def libreoffice_available() -> bool:
    return shutil.which(settings.soffice_path) is not None


async def convert_docx_to_pdf(docx_bytes: bytes) -> bytes:
    """Run `soffice --headless --convert-to pdf` on the document and return the PDF."""
    with tempfile.TemporaryDirectory() as tmpdir:
        input_path = os.path.join(tmpdir, "input.docx")
        output_path = os.path.join(tmpdir, "input.pdf")
        async with aiofiles.open(input_path, "wb") as f:
            await f.write(docx_bytes)

        process = await asyncio.create_subprocess_exec(
            settings.soffice_path, "--headless", "--convert-to", "pdf", "--outdir", tmpdir, input_path,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate()
        if process.returncode != 0:
            raise RuntimeError(f"LibreOffice conversion failed: {stderr.decode(errors='ignore')}")
        if not os.path.exists(output_path):
            raise RuntimeError("LibreOffice did not produce a PDF file.")

        async with aiofiles.open(output_path, "rb") as f:
            return await f.read()


async def to_output_format(docx_bytes: bytes, output_format: str) -> Tuple[bytes, str, str]:
    """
    (content, media type, extension) for the requested output. Without
    LibreOffice a PDF request falls back to the DOCX.
    """
    if output_format == "pdf":
        if libreoffice_available():
            return await convert_docx_to_pdf(docx_bytes), PDF_MEDIA_TYPE, "pdf"
        logger.warning("LibreOffice not found, returning DOCX instead of PDF")
    return docx_bytes, DOCX_MEDIA_TYPE, "docx"
