# ============================================================================
# src/medibill_client/core/analysis.py
# ============================================================================
"""
Document analysis

Uploads a document to the analysis endpoint through the session, validates
the returned report and folds its outcome into the dashboard summary.
OCR, parsing and compliance rules all run server-side.
"""

from dataclasses import dataclass
from typing import Optional
import logging
import mimetypes

import aiohttp
from pydantic import ValidationError

from .accumulator import OutcomeAccumulator
from .models import AnalysisOutcome, AnalysisReport, DashboardSummary
from .outcome import ErrorKind, Failure, RequestOutcome, Success
from .session import SessionManager


UPLOAD_AND_ANALYZE_ENDPOINT = "/api/files/upload-and-analyze"

NO_FILE_MESSAGE = "Please select a file first."
INVALID_REPORT_MESSAGE = (
    "Analysis response is missing validation results; the server may be "
    "running an incompatible version."
)


@dataclass(frozen=True)
class AnalysisResult:
    report: AnalysisReport
    outcome: AnalysisOutcome
    summary: DashboardSummary


class DocumentAnalysisService:
    """Runs one analysis per call and records it exactly once on success."""

    def __init__(self, session: SessionManager, accumulator: OutcomeAccumulator):
        self.session = session
        self.accumulator = accumulator
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def build_form(
        content: bytes,
        filename: str,
        force_ocr: bool = False,
        content_type: Optional[str] = None,
    ) -> aiohttp.FormData:
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        form = aiohttp.FormData()
        form.add_field("file", content, filename=filename, content_type=content_type)
        form.add_field("force_ocr", "true" if force_ocr else "false")
        return form

    async def analyze(
        self,
        content: bytes,
        filename: str,
        force_ocr: bool = False,
        content_type: Optional[str] = None,
    ) -> RequestOutcome:
        """
        Upload and analyze a document.

        Args:
            content: Raw file bytes
            filename: Original filename
            force_ocr: Ask the server to OCR even if the PDF has a text layer
            content_type: MIME type, guessed from filename if omitted

        Returns:
            Success(AnalysisResult) or the Failure from the request
        """
        if not content:
            return Failure(ErrorKind.UNKNOWN, NO_FILE_MESSAGE)

        self.logger.info(f"Submitting {filename} ({len(content):,} bytes, force_ocr={force_ocr})")
        outcome = await self.session.request(
            UPLOAD_AND_ANALYZE_ENDPOINT,
            method="POST",
            data=self.build_form(content, filename, force_ocr, content_type),
        )
        if not outcome.ok:
            return outcome

        try:
            report = AnalysisReport.model_validate(outcome.body)
        except ValidationError as e:
            self.logger.warning(f"Invalid analysis report for {filename}: {e}")
            return Failure(ErrorKind.MALFORMED_RESPONSE, INVALID_REPORT_MESSAGE, outcome.status)

        analysis_outcome = AnalysisOutcome.from_report(report)
        summary = self.accumulator.record(analysis_outcome)

        return Success(
            AnalysisResult(report=report, outcome=analysis_outcome, summary=summary),
            outcome.status,
        )
