"""
PDF text and table extraction using PyMuPDF.

Only the first MAX_PDF_PAGES pages are read; longer documents are
truncated rather than rejected. Each page's words are merged into
positioned fragments and handed to the table detector.
"""
import time
import logging

import fitz  # PyMuPDF

from assignai.config import MAX_PDF_PAGES, PDF_EXTRACTION_TIMEOUT
from assignai.errors import ExtractionError
from assignai.services.table_detector import detect_tables

logger = logging.getLogger(__name__)

# Words on one text line closer than this (points) belong to the same fragment
WORD_MERGE_GAP = 6.0


def page_fragments(page, merge_gap=WORD_MERGE_GAP):
    """Return {"text", "x", "y"} fragments for a page.

    PyMuPDF reports single words; consecutive words on the same line with a
    small gap are joined so a multi-word cell like "Net Income" stays one
    fragment, while the wide gap between table columns splits them.
    """
    words = page.get_text("words")
    words.sort(key=lambda w: (w[5], w[6], w[7]))  # block, line, word

    fragments = []
    current = None
    current_line = None
    last_x1 = 0.0
    for x0, y0, x1, y1, word, block_no, line_no, _word_no in words:
        line = (block_no, line_no)
        if current is not None and line == current_line and x0 - last_x1 <= merge_gap:
            current['text'] += ' ' + word
        else:
            if current is not None:
                fragments.append(current)
            current = {"text": word, "x": x0, "y": y1}
            current_line = line
        last_x1 = x1
    if current is not None:
        fragments.append(current)
    return fragments


def _check_deadline(deadline, timeout, pages_done):
    if deadline is not None and time.monotonic() > deadline:
        raise ExtractionError(f"PDF extraction exceeded {timeout}s after {pages_done} pages")


def extract_pdf(pdf_data, max_pages=MAX_PDF_PAGES, timeout=PDF_EXTRACTION_TIMEOUT):
    """Extract text and candidate tables from PDF bytes.

    Args:
        pdf_data: PDF content as bytes or a binary file object
        max_pages: Hard cap on the number of pages read
        timeout: Wall-clock budget in seconds, checked before each page
            and again before its table detection

    Returns:
        {"text": str, "tables": [{"page": int, "content": {"rows": [...]}}],
         "pageCount": int, "pagesProcessed": int}

    Raises:
        ExtractionError: the data is not a readable PDF, is encrypted, or
            extraction ran past the deadline
    """
    if hasattr(pdf_data, 'read'):
        pdf_data = pdf_data.read()
    deadline = time.monotonic() + timeout if timeout else None

    try:
        doc = fitz.open(stream=pdf_data, filetype="pdf")
    except Exception as e:
        raise ExtractionError(f"Could not open PDF: {e}") from e

    try:
        if doc.needs_pass:
            raise ExtractionError("PDF is password protected")

        page_count = doc.page_count
        pages_to_process = min(page_count, max_pages)
        if page_count > max_pages:
            logger.info("PDF has %d pages, reading the first %d", page_count, max_pages)

        page_texts = []
        tables = []
        for index in range(pages_to_process):
            _check_deadline(deadline, timeout, index)
            page = doc.load_page(index)
            page_texts.append(page.get_text())
            # get_text alone can eat the budget on a dense page
            _check_deadline(deadline, timeout, index)

            rect = page.rect
            bounds = (rect.x0, rect.y0, rect.x1, rect.y1)
            for table in detect_tables(page_fragments(page), bounds=bounds):
                tables.append({"page": index + 1, "content": table})
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"Could not read PDF content: {e}") from e
    finally:
        doc.close()

    return {
        "text": "\n".join(page_texts),
        "tables": tables,
        "pageCount": page_count,
        "pagesProcessed": pages_to_process,
    }
