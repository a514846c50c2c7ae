from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional


class _OracleModel(BaseModel):
    # Backend adds fields over time (raw OCR dumps etc.); ignore what we don't read
    model_config = ConfigDict(extra="ignore", populate_by_name=True, allow_inf_nan=False)


class ExtractedFields(_OracleModel):
    id_number: Optional[str] = Field(None, alias="idNumber")
    identity_number: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    full_name: Optional[str] = Field(None, alias="fullName")
    date_of_birth: Optional[str] = Field(None, alias="dateOfBirth")
    gender: Optional[str] = None
    sex: Optional[str] = None
    ocr_confidence: Optional[float] = Field(None, alias="ocrConfidence")


class DocumentChecks(_OracleModel):
    id_format_valid: Optional[bool] = Field(None, alias="idFormatValid")
    ocr_confidence_ok: Optional[bool] = Field(None, alias="ocrConfidenceOk")
    blur_ok: Optional[bool] = Field(None, alias="blurOk")


class DocumentResponse(_OracleModel):
    extracted: ExtractedFields
    checks: Optional[DocumentChecks] = None
    decision: Optional[str] = None
    mismatches: Optional[List[str]] = None

    @field_validator("mismatches", mode="before")
    @classmethod
    def keep_named_mismatches(cls, value: Any) -> Any:
        # Null or non-string entries are dropped; the named fields still block
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str)]
        return value


class FaceVerifyResponse(_OracleModel):
    similarity: float
    threshold: Optional[float] = None
    decision: Optional[str] = None
    liveness_score: Optional[float] = Field(None, alias="livenessScore")
