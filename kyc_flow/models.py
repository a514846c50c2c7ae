from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple

from config import settings, DECISION_ALIASES, EXPECTED_IDENTITY_FIELDS


class Step(str, Enum):
    """Where the user is in the flow"""
    DOCUMENT = "document"
    FACE = "face"
    DONE = "done"


class Stage(str, Enum):
    """A stage that owns a captured image and a result"""
    DOCUMENT = "document"
    FACE = "face"


class DecisionKind(str, Enum):
    AUTO_PASS = "AUTO_PASS"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"


class Verdict(str, Enum):
    """Resolved result of a stage"""
    AUTO_PASS = "AUTO_PASS"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    FAIL = "FAIL"


class VerdictSource(str, Enum):
    MISMATCH = "mismatch"
    ORACLE = "oracle"
    HEURISTIC = "heuristic"


class VerificationOutcome(str, Enum):
    """Terminal result of a finished session"""
    VERIFIED = "verified"
    FLAGGED = "flagged_for_review"


@dataclass(frozen=True)
class Decision:
    """
    Decision token returned by the backend.

    Recognised tokens map to AUTO_PASS, MANUAL_REVIEW or FAIL. Anything else,
    including a missing token, is UNKNOWN and keeps the raw value; callers fall
    back to their local heuristic for UNKNOWN only.
    """
    kind: DecisionKind
    raw: Optional[str] = None

    @classmethod
    def parse(cls, token: Optional[str]) -> "Decision":
        if token is None:
            return cls(DecisionKind.UNKNOWN, None)
        raw = str(token)
        normalized = raw.strip().upper()
        kind = DECISION_ALIASES.get(normalized)
        if kind is None:
            return cls(DecisionKind.UNKNOWN, raw)
        return cls(DecisionKind(kind), raw)

    @property
    def is_recognized(self) -> bool:
        return self.kind is not DecisionKind.UNKNOWN

    def as_verdict(self) -> Optional[Verdict]:
        if not self.is_recognized:
            return None
        return Verdict(self.kind.value)


@dataclass(frozen=True)
class CapturedImage:
    """Raw image bytes plus MIME type. Lives only as long as the session."""
    data: bytes = field(repr=False)
    mime: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"CapturedImage(mime={self.mime!r}, size={self.size})"


@dataclass(frozen=True)
class ExpectedIdentity:
    """Identity the user claims; the backend compares the document against it"""
    full_name: str
    date_of_birth: date
    id_number: Optional[str] = None
    gender: Optional[str] = None   # 'M' or 'F'

    def to_form(self) -> Dict[str, str]:
        """Form fields sent alongside the images. Empty optional fields are left out."""
        values = {
            "full_name": self.full_name,
            "date_of_birth": self.date_of_birth.isoformat(),
            "id_number": self.id_number,
            "gender": self.gender,
        }
        return {
            EXPECTED_IDENTITY_FIELDS[key]["form_field"]: value
            for key, value in values.items()
            if value
        }


@dataclass(frozen=True)
class OcrResult:
    """Fields the backend read off the document, plus its quality checks"""
    name: Optional[str] = None
    date_of_birth: Optional[date] = None
    id_number: Optional[str] = None
    gender: Optional[str] = None
    ocr_confidence: Optional[float] = None

    corners_ok: bool = True
    blur_ok: bool = True
    glare_ok: bool = True

    @property
    def is_quality_ok(self) -> bool:
        return self.corners_ok and self.blur_ok and self.glare_ok


@dataclass(frozen=True)
class MismatchInfo:
    """Ordered display names of fields that disagree with the expected identity"""
    fields: Tuple[str, ...] = ()

    @property
    def has_any(self) -> bool:
        return bool(self.fields)


@dataclass(frozen=True)
class FaceMatchResult:
    match_score: float       # 0..1
    liveness_score: float    # 0..1

    @property
    def passed(self) -> bool:
        return (self.match_score >= settings.FACE_MIN_MATCH_SCORE
                and self.liveness_score >= settings.FACE_MIN_LIVENESS_SCORE)


@dataclass(frozen=True)
class DocumentOutcome:
    ocr: OcrResult
    decision: Decision
    mismatch: MismatchInfo
    verdict: Verdict
    source: VerdictSource

    @property
    def is_blocked(self) -> bool:
        return self.mismatch.has_any


@dataclass(frozen=True)
class FaceOutcome:
    result: FaceMatchResult
    decision: Decision
    verdict: Verdict
    source: VerdictSource
    # Backend's own pass bar; informational only
    threshold: Optional[float] = None
    liveness_reported: bool = False
