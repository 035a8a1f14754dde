from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import time

from PyPDF2 import PdfReader, errors as pypdf_errors
from pdfminer.high_level import extract_text as pdfminer_extract_text
from pdfminer.pdfparser import PDFSyntaxError

from core.logger import get_logger

log = get_logger("ingestion/pdf_reader")

MIN_TEXT_LEN_PER_PAGE = 20  # below this average, retry with pdfminer
STATEMENT_PASSWORD_HINT = "ID number"  # M-Pesa statements are locked with the owner's ID


@dataclass(frozen=True)
class StatementText:
    """
    Attributes:
        path: Absolute path to the statement PDF
        encrypted: Whether the PDF was password protected
        pages: Extracted text, one string per page
        extractor: "pypdf2" or "pdfminer"
    """
    path: str
    encrypted: bool
    pages: List[str]
    extractor: str

    @property
    def text(self) -> str:
        return "\n".join(self.pages)


def _decrypt(reader: PdfReader, password: Optional[str], name: str) -> None:
    try:
        ok = reader.decrypt(password or "")
    except pypdf_errors.WrongPasswordError:
        ok = 0
    if not ok:
        msg = f"Failed to decrypt statement, check the {STATEMENT_PASSWORD_HINT} password: path={name}"
        log.error(msg)
        raise pypdf_errors.FileNotDecryptedError(msg)
    log.info(f"Statement decrypted: path={name}")


def _pypdf2_pages(path: Path, password: Optional[str]) -> tuple[bool, List[str]]:
    reader = PdfReader(str(path))
    encrypted = bool(reader.is_encrypted)
    if encrypted:
        _decrypt(reader, password, path.name)

    pages: List[str] = []
    for page_num, page in enumerate(reader.pages, start=1):
        try:
            pages.append(page.extract_text() or "")
        except Exception as e:
            log.warning(f"Failed to extract page {page_num}: path={path.name} error={type(e).__name__}: {e}")
            pages.append("")
    return encrypted, pages


def _needs_fallback(pages: List[str]) -> bool:
    if not pages:
        return True
    return sum(len(p) for p in pages) / len(pages) < MIN_TEXT_LEN_PER_PAGE


def read_statement(path: str | Path, password: Optional[str] = None) -> StatementText:
    """
    Read the text of an M-Pesa statement PDF.

    PyPDF2 is tried first; when it yields too little text, pdfminer.six is
    used on the whole document instead.

    Raises:
        FileNotFoundError: If the file does not exist
        pypdf_errors.FileNotDecryptedError: Wrong or missing password
        pypdf_errors.PdfReadError: Malformed PDF
    """
    start_time = time.time()
    pdf_path = Path(path).resolve()
    if not pdf_path.is_file():
        msg = f"PDF file not found: {pdf_path}"
        log.error(msg)
        raise FileNotFoundError(msg)

    log.info(f"Reading statement: path={pdf_path.name} password_provided={bool(password)}")

    try:
        encrypted, pages = _pypdf2_pages(pdf_path, password)
    except (pypdf_errors.FileNotDecryptedError, pypdf_errors.PdfReadError) as e:
        log.error(f"Statement read failed: path={pdf_path.name} error={type(e).__name__}: {e}")
        raise

    extractor = "pypdf2"
    if _needs_fallback(pages):
        log.warning(f"PyPDF2 text too sparse, trying pdfminer: path={pdf_path.name}")
        try:
            text = pdfminer_extract_text(str(pdf_path), password=password or "") or ""
            pages, extractor = [text], "pdfminer"
        except PDFSyntaxError as e:
            log.error(f"pdfminer fallback failed, keeping PyPDF2 text: path={pdf_path.name} error={e!r}")

    elapsed = time.time() - start_time
    log.info(
        f"Statement read complete ({extractor}): path={pdf_path.name} "
        f"pages={len(pages)} chars={sum(len(p) for p in pages)} elapsed={elapsed:.2f}s"
    )
    return StatementText(path=str(pdf_path), encrypted=encrypted, pages=pages, extractor=extractor)


def read_pdf_text(path: str | Path, password: Optional[str] = None) -> str:
    return read_statement(path, password).text
