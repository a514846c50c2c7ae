import logging
from typing import Any, Dict, Optional

import pydantic

from config import settings, FORM_FIELDS
from .decision import face_verdict
from .errors import UnexpectedResponseShape
from .guard import InFlightGuard
from .models import CapturedImage, Decision, ExpectedIdentity, FaceMatchResult, FaceOutcome
from .schemas import FaceVerifyResponse
from .transport import OracleTransport, upload_part
from .utils import normalize_score

logger = logging.getLogger(__name__)


class FaceStage:
    """
    Compares the accepted document photo with a selfie-with-ID.

    The caller is responsible for only submitting a document that passed the
    document stage; this class just talks to the backend and resolves the
    decision.
    """

    def __init__(self, transport: Optional[OracleTransport] = None, endpoint: Optional[str] = None):
        self.transport = transport or OracleTransport()
        self.endpoint = endpoint or settings.FACE_VERIFY_ENDPOINT
        self.guard = InFlightGuard("face")

    def submit(self,
               document_image: CapturedImage,
               selfie_image: CapturedImage,
               expected: ExpectedIdentity) -> FaceOutcome:
        with self.guard.hold():
            body = self.transport.post_multipart(
                self.endpoint,
                files={
                    FORM_FIELDS["document"]: upload_part(document_image, "front"),
                    FORM_FIELDS["selfie"]: upload_part(selfie_image, "selfie"),
                },
                data=expected.to_form(),
            )
        outcome = self.parse_response(body)

        logger.info(
            "Face stage: similarity=%.2f threshold=%s liveness=%s decision=%s verdict=%s (%s)",
            outcome.result.match_score,
            outcome.threshold,
            outcome.result.liveness_score if outcome.liveness_reported else "n/a",
            outcome.decision.raw,
            outcome.verdict.value,
            outcome.source.value,
        )
        return outcome

    def parse_response(self, body: Dict[str, Any]) -> FaceOutcome:
        try:
            response = FaceVerifyResponse.model_validate(body)
        except pydantic.ValidationError as e:
            raise UnexpectedResponseShape(f"Invalid face-verify response: {e}") from e

        # A missing liveness score counts as 0, so the local fallback cannot pass without it
        result = FaceMatchResult(
            match_score=normalize_score(response.similarity),
            liveness_score=normalize_score(response.liveness_score),
        )
        decision = Decision.parse(response.decision)
        verdict, source = face_verdict(decision, result)

        return FaceOutcome(
            result=result,
            decision=decision,
            verdict=verdict,
            source=source,
            threshold=(
                normalize_score(response.threshold)
                if response.threshold is not None else None
            ),
            liveness_reported=response.liveness_score is not None,
        )
