from dataclasses import dataclass
from typing import Tuple, Union

from .models import (
    Decision, DocumentOutcome, FaceMatchResult, FaceOutcome, MismatchInfo,
    OcrResult, Verdict, VerdictSource, VerificationOutcome
)


# ------------------------
# Resolutions
# ------------------------
@dataclass(frozen=True)
class Proceed:
    """The document was accepted; the flow moves on to the face step"""
    verdict: Verdict

    user_message = "Your ID was received. Continue to the selfie step."


@dataclass(frozen=True)
class MismatchBlocked:
    """The document disagrees with the expected identity; retake required"""
    fields: Tuple[str, ...]

    @property
    def user_message(self) -> str:
        return (
            "Some details on your ID do not match your profile: "
            f"{', '.join(self.fields)}. Please retake the photo of your ID."
        )


@dataclass(frozen=True)
class DocumentRetryRequired:
    """No usable decision and the document failed its quality checks"""

    user_message = "We couldn't read your ID clearly. Please retake the photo."


@dataclass(frozen=True)
class FaceRetryRequired:
    """The face check failed; the selfie can be retaken without restarting"""

    user_message = "We couldn't verify your selfie. Please retake."


@dataclass(frozen=True)
class Completed:
    outcome: VerificationOutcome

    @property
    def user_message(self) -> str:
        if self.outcome is VerificationOutcome.FLAGGED:
            return "Thanks! Your verification was received and may require manual review."
        return "You're verified."


DocumentResolution = Union[Proceed, MismatchBlocked, DocumentRetryRequired]
FaceResolution = Union[Completed, FaceRetryRequired]


# ------------------------
# Verdict rules
# ------------------------
def document_verdict(decision: Decision, ocr: OcrResult,
                     mismatch: MismatchInfo) -> Tuple[Verdict, VerdictSource]:
    """
    Resolve the document stage verdict.

    Order:
    - any mismatch -> FAIL, whatever the decision says
    - recognised decision token -> that decision
    - otherwise the OCR quality flags decide pass/fail
    """
    if mismatch.has_any:
        return Verdict.FAIL, VerdictSource.MISMATCH

    verdict = decision.as_verdict()
    if verdict is not None:
        return verdict, VerdictSource.ORACLE

    if ocr.is_quality_ok:
        return Verdict.AUTO_PASS, VerdictSource.HEURISTIC
    return Verdict.FAIL, VerdictSource.HEURISTIC


def face_verdict(decision: Decision,
                 result: FaceMatchResult) -> Tuple[Verdict, VerdictSource]:
    """Recognised decision token first, then the local score heuristic"""
    verdict = decision.as_verdict()
    if verdict is not None:
        return verdict, VerdictSource.ORACLE

    if result.passed:
        return Verdict.AUTO_PASS, VerdictSource.HEURISTIC
    return Verdict.FAIL, VerdictSource.HEURISTIC


# ------------------------
# Resolvers
# ------------------------
def resolve_mismatch(outcome: DocumentOutcome) -> Union[Proceed, MismatchBlocked]:
    """A non-empty mismatch list always blocks; a passing decision cannot override it"""
    if outcome.mismatch.has_any:
        return MismatchBlocked(fields=outcome.mismatch.fields)
    return Proceed(verdict=outcome.verdict)


def resolve_document(outcome: DocumentOutcome) -> DocumentResolution:
    resolution = resolve_mismatch(outcome)
    if isinstance(resolution, MismatchBlocked):
        return resolution
    if outcome.verdict is Verdict.FAIL:
        return DocumentRetryRequired()
    return resolution


def resolve_face(outcome: FaceOutcome) -> FaceResolution:
    if outcome.verdict is Verdict.AUTO_PASS:
        return Completed(VerificationOutcome.VERIFIED)
    if outcome.verdict is Verdict.MANUAL_REVIEW:
        return Completed(VerificationOutcome.FLAGGED)
    return FaceRetryRequired()
