from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Verification backend
    ORACLE_BASE_URL: str = "http://localhost:8000"
    ORACLE_API_TOKEN: Optional[str] = None
    DOCUMENT_ENDPOINT: str = "/api/documents/rsa-id/front"
    FACE_VERIFY_ENDPOINT: str = "/api/documents/rsa-id/face-verify"

    # Transport timeouts (seconds)
    CONNECT_TIMEOUT: float = 15
    READ_TIMEOUT: float = 20

    # Image Size Thresholds (bytes)
    MIN_IMAGE_BYTES: int = 60 * 1024
    MAX_IMAGE_BYTES: int = 8 * 1024 * 1024

    # Face-match fallback used only when the backend sends no decision
    FACE_MIN_MATCH_SCORE: float = 0.72
    FACE_MIN_LIVENESS_SCORE: float = 0.60

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()

# MIME types the backend accepts for uploads
ACCEPTED_MIME_TYPES = {"image/jpeg", "image/png"}

# Multipart form field names per stage
FORM_FIELDS = {
    "document": "frontIdImage",
    "selfie": "selfieWithId",
}

UPLOAD_FILENAMES = {
    "image/jpeg": "{name}.jpg",
    "image/png": "{name}.png",
}

# Decision tokens as sent by the backend, normalised to upper case
DECISION_ALIASES = {
    "AUTO_PASS": "AUTO_PASS",
    "MANUAL_REVIEW": "MANUAL_REVIEW",
    "FAIL": "FAIL",
    "FAILED": "FAIL",
    "REJECT": "FAIL",
    "REJECTED": "FAIL",
}

# Expected identity fields: form field name and display label
EXPECTED_IDENTITY_FIELDS = {
    "full_name": {"form_field": "expectedName", "label": "Name"},
    "date_of_birth": {"form_field": "expectedDob", "label": "Date of Birth"},
    "id_number": {"form_field": "expectedIdNumber", "label": "ID Number"},
    "gender": {"form_field": "expectedGender", "label": "Gender"},
}
