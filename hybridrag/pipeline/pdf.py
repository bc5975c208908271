"""
PDF Text Extraction
===================

Extracts plain text from PDF files or uploaded bytes with PyMuPDF.
"""

import logging
from pathlib import Path
from typing import Union

import fitz

from hybridrag.exceptions import EmptyContentError

logger = logging.getLogger(__name__)


def extract_pdf_text(source: Union[str, Path, bytes]) -> str:
    """
    Extract the text of every page, pages separated by a blank line.

    Args:
        source: Path to a PDF or its raw bytes

    Returns:
        Concatenated page text

    Raises:
        EmptyContentError: if the file is not a readable PDF or has no text layer
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            doc = fitz.open(stream=bytes(source), filetype="pdf")
        else:
            doc = fitz.open(str(source))
    except RuntimeError as e:
        raise EmptyContentError(f"Could not open PDF: {e}", original_error=e)

    try:
        pages = []
        for page_num in range(len(doc)):
            page_text = doc[page_num].get_text()
            if page_text and page_text.strip():
                pages.append(page_text)
    finally:
        doc.close()

    if not pages:
        raise EmptyContentError("PDF contains no extractable text")

    logger.info(f"Extracted text from {len(pages)} PDF pages")
    return "\n\n".join(pages)
