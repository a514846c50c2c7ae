import logging
from typing import Any, Dict, Optional

import pydantic

from config import settings, FORM_FIELDS
from .decision import document_verdict
from .errors import UnexpectedResponseShape
from .guard import InFlightGuard
from .models import CapturedImage, Decision, DocumentOutcome, ExpectedIdentity, MismatchInfo, OcrResult
from .schemas import DocumentResponse
from .transport import OracleTransport, upload_part
from .utils import mask_id_number, mask_name, normalize_score, parse_date_of_birth

logger = logging.getLogger(__name__)


class DocumentStage:
    """
    Submits the front of the ID document and maps the backend's answer
    (extracted fields, quality checks, decision, mismatches) into a
    DocumentOutcome. Does not touch the session; the orchestrator decides
    whether to advance.
    """

    def __init__(self, transport: Optional[OracleTransport] = None, endpoint: Optional[str] = None):
        self.transport = transport or OracleTransport()
        self.endpoint = endpoint or settings.DOCUMENT_ENDPOINT
        self.guard = InFlightGuard("document")

    def submit(self, image: CapturedImage, expected: ExpectedIdentity) -> DocumentOutcome:
        with self.guard.hold():
            body = self.transport.post_multipart(
                self.endpoint,
                files={FORM_FIELDS["document"]: upload_part(image, "front")},
                data=expected.to_form(),
            )
        outcome = self.parse_response(body)

        logger.info(
            "Document stage: name=%s id=%s decision=%s verdict=%s (%s) mismatches=%s",
            mask_name(outcome.ocr.name),
            mask_id_number(outcome.ocr.id_number),
            outcome.decision.raw,
            outcome.verdict.value,
            outcome.source.value,
            list(outcome.mismatch.fields),
        )
        return outcome

    def parse_response(self, body: Dict[str, Any]) -> DocumentOutcome:
        try:
            response = DocumentResponse.model_validate(body)
        except pydantic.ValidationError as e:
            raise UnexpectedResponseShape(f"Invalid document response: {e}") from e

        ocr = self.to_ocr_result(response)
        decision = Decision.parse(response.decision)
        mismatch = MismatchInfo(tuple(f for f in (response.mismatches or []) if f))
        verdict, source = document_verdict(decision, ocr, mismatch)

        return DocumentOutcome(
            ocr=ocr,
            decision=decision,
            mismatch=mismatch,
            verdict=verdict,
            source=source,
        )

    def to_ocr_result(self, response: DocumentResponse) -> OcrResult:
        extracted = response.extracted
        checks = response.checks

        name = extracted.full_name
        if not name:
            name = " ".join(p for p in (extracted.first_name, extracted.last_name) if p).strip() or None

        # idFormatValid stands in for corners, ocrConfidenceOk for glare;
        # a check the backend did not report counts as passed
        corners_ok = checks is None or checks.id_format_valid is not False
        glare_ok = checks is None or checks.ocr_confidence_ok is not False
        blur_ok = checks is None or checks.blur_ok is not False

        return OcrResult(
            name=name,
            date_of_birth=parse_date_of_birth(extracted.date_of_birth),
            id_number=extracted.id_number or extracted.identity_number,
            gender=extracted.gender or extracted.sex,
            ocr_confidence=(
                normalize_score(extracted.ocr_confidence)
                if extracted.ocr_confidence is not None else None
            ),
            corners_ok=corners_ok,
            blur_ok=blur_ok,
            glare_ok=glare_ok,
        )
