import argparse
import json
import logging
import sys
from datetime import date
from typing import Any, Dict, List, Optional

from config import settings
from .capture import load_captured_image
from .decision import Completed, MismatchBlocked, Proceed
from .errors import KycError, ValidationError
from .flow import VerificationFlow
from .models import ExpectedIdentity
from .session import SessionState
from .transport import OracleTransport
from .utils import mask_id_number, mask_name

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ACTION_REQUIRED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kyc-flow",
        description="Run a document + selfie identity verification against the KYC backend",
    )
    parser.add_argument("--document", required=True, help="Front of the ID (jpg/png/heic/pdf)")
    parser.add_argument("--selfie", required=True, help="Selfie holding the ID (jpg/png/heic)")
    parser.add_argument("--name", required=True, help="Expected full name")
    parser.add_argument("--dob", required=True, type=date.fromisoformat,
                        help="Expected date of birth, YYYY-MM-DD")
    parser.add_argument("--id-number", help="Expected ID number")
    parser.add_argument("--gender", choices=["M", "F"], help="Expected gender")
    parser.add_argument("--base-url", default=None,
                        help=f"Backend base URL (default: {settings.ORACLE_BASE_URL})")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    return parser


def summarize(state: SessionState, messages: List[str],
              quality: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Masked, JSON-friendly view of the session"""
    summary: Dict[str, Any] = {
        "step": state.step.value,
        "outcome": state.outcome.value if state.outcome else None,
        "messages": messages,
    }
    if quality is not None:
        summary["quality"] = quality
    doc = state.document_result
    if doc is not None:
        summary["document"] = {
            "name": mask_name(doc.ocr.name),
            "id_number": mask_id_number(doc.ocr.id_number),
            "date_of_birth": doc.ocr.date_of_birth.isoformat() if doc.ocr.date_of_birth else None,
            "decision": doc.decision.raw,
            "verdict": doc.verdict.value,
            "verdict_source": doc.source.value,
            "mismatches": list(doc.mismatch.fields),
        }
    face = state.face_result
    if face is not None:
        summary["face"] = {
            "similarity": face.result.match_score,
            "threshold": face.threshold,
            "liveness": face.result.liveness_score if face.liveness_reported else None,
            "decision": face.decision.raw,
            "verdict": face.verdict.value,
            "verdict_source": face.source.value,
        }
    return summary


def run(args: argparse.Namespace) -> int:
    expected = ExpectedIdentity(
        full_name=args.name,
        date_of_birth=args.dob,
        id_number=args.id_number,
        gender=args.gender,
    )
    flow = VerificationFlow(expected, transport=OracleTransport(base_url=args.base_url))
    messages: List[str] = []
    quality = None
    image = None
    code = EXIT_ACTION_REQUIRED

    try:
        image = load_captured_image(args.document)
        flow.capture_document(image)
        doc_resolution = flow.submit_document()
        messages.append(doc_resolution.user_message)

        if isinstance(doc_resolution, Proceed):
            image = load_captured_image(args.selfie)
            flow.capture_selfie(image)
            face_resolution = flow.submit_face()
            messages.append(face_resolution.user_message)
            if isinstance(face_resolution, Completed):
                code = EXIT_OK
        elif isinstance(doc_resolution, MismatchBlocked):
            logger.info("Document blocked by mismatched fields: %s", ", ".join(doc_resolution.fields))
    except ValidationError as e:
        logger.error("Image rejected: %s", e)
        messages.append(e.user_message)
        # A 413 came from the backend; only local rejections get the gate's assessment
        if image is not None and getattr(e, "status_code", None) is None:
            quality = flow.quality_gate.evaluate(image)
        code = EXIT_ERROR
    except KycError as e:
        logger.error("Verification failed: %s", e)
        messages.append(e.user_message)
        code = EXIT_ERROR
    except (OSError, ValueError) as e:
        logger.error("Could not load image: %s", e)
        messages.append(str(e))
        code = EXIT_ERROR

    print(json.dumps(summarize(flow.state, messages, quality), indent=2))
    return code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
