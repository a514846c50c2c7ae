import pytest
from datetime import date

from kyc_flow.errors import KycError
from kyc_flow.models import CapturedImage, ExpectedIdentity

KB = 1024
MB = 1024 * KB


def make_image(size: int, mime: str = "image/jpeg") -> CapturedImage:
    return CapturedImage(b"\xff" * size, mime)


class StubTransport:
    """Stands in for OracleTransport; replays queued bodies or errors per path"""

    def __init__(self):
        self.responses = {}
        self.calls = []

    def queue(self, path, body):
        self.responses.setdefault(path, []).append(body)

    def post_multipart(self, path, files, data=None):
        self.calls.append({"path": path, "files": files, "data": data})
        queued = self.responses.get(path)
        if not queued:
            raise AssertionError(f"Unexpected request to {path}")
        body = queued.pop(0)
        if isinstance(body, KycError):
            raise body
        return body


def document_body(decision="AUTO_PASS", mismatches=None, checks=None, **extracted):
    fields = {
        "idNumber": "9001015009087",
        "firstName": "Thandi",
        "lastName": "Nkosi",
        "fullName": "Thandi Nkosi",
        "dateOfBirth": "1990-01-01",
        "gender": "F",
        "ocrConfidence": 0.93,
    }
    fields.update(extracted)
    body = {
        "extracted": fields,
        "checks": checks if checks is not None else {"idFormatValid": True, "ocrConfidenceOk": True},
        "mismatches": mismatches if mismatches is not None else [],
    }
    if decision is not None:
        body["decision"] = decision
    return body


def face_body(similarity=0.91, threshold=0.85, decision="AUTO_PASS", liveness=None):
    body = {"similarity": similarity, "threshold": threshold}
    if decision is not None:
        body["decision"] = decision
    if liveness is not None:
        body["livenessScore"] = liveness
    return body


@pytest.fixture
def expected():
    return ExpectedIdentity(
        full_name="Thandi Nkosi",
        date_of_birth=date(1990, 1, 1),
        id_number="9001015009087",
        gender="F",
    )


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def document_image():
    return make_image(100 * KB)


@pytest.fixture
def selfie_image():
    return make_image(200 * KB)
