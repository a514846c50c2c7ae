import pytest

from kyc_flow.decision import document_verdict, face_verdict
from kyc_flow.errors import InvalidTransition, SessionClosed
from kyc_flow.models import (
    Decision, DocumentOutcome, FaceMatchResult, FaceOutcome, MismatchInfo, OcrResult,
    Stage, Step, VerificationOutcome
)
from kyc_flow.session import (
    Abandon, DocumentCaptured, DocumentEvaluated, FaceEvaluated, Reset, Retake,
    SelfieCaptured, SessionState, transition
)

from conftest import KB, make_image

DOC = make_image(100 * KB)
SELFIE = make_image(200 * KB)


def doc_outcome(decision="AUTO_PASS", mismatches=(), ocr=None):
    ocr = ocr or OcrResult(name="Thandi Nkosi")
    decision = Decision.parse(decision)
    mismatch = MismatchInfo(tuple(mismatches))
    verdict, source = document_verdict(decision, ocr, mismatch)
    return DocumentOutcome(ocr=ocr, decision=decision, mismatch=mismatch, verdict=verdict, source=source)


def face_outcome(decision="AUTO_PASS", match=0.91, liveness=0.0):
    decision = Decision.parse(decision)
    result = FaceMatchResult(match_score=match, liveness_score=liveness)
    verdict, source = face_verdict(decision, result)
    return FaceOutcome(result=result, decision=decision, verdict=verdict, source=source, threshold=0.85)


def run(*events, state=None):
    state = state or SessionState()
    for event in events:
        state = transition(state, event)
    return state


def at_face():
    return run(DocumentCaptured(DOC), DocumentEvaluated(doc_outcome()))


def test_initial_state():
    state = SessionState()
    assert state.step is Step.DOCUMENT
    assert not state.can_submit_document
    assert not state.can_submit_face
    assert not state.is_closed


def test_accepted_document_moves_to_face():
    state = at_face()
    assert state.step is Step.FACE
    assert state.document_accepted
    assert state.mismatch is None
    assert state.document_image is DOC


@pytest.mark.parametrize("decision", ["AUTO_PASS", "MANUAL_REVIEW", None])
def test_mismatch_keeps_document_step(decision):
    state = run(DocumentCaptured(DOC),
                DocumentEvaluated(doc_outcome(decision, mismatches=["Name", "Date of Birth"])))
    assert state.step is Step.DOCUMENT
    assert state.mismatch.fields == ("Name", "Date of Birth")
    assert not state.document_accepted


def test_failed_document_stays_at_document():
    state = run(DocumentCaptured(DOC), DocumentEvaluated(doc_outcome("FAIL")))
    assert state.step is Step.DOCUMENT
    assert state.document_result is not None


def test_new_document_capture_clears_previous_result():
    state = run(DocumentCaptured(DOC), DocumentEvaluated(doc_outcome(mismatches=["Name"])))
    new_doc = make_image(120 * KB)
    state = transition(state, DocumentCaptured(new_doc))
    assert state.document_image is new_doc
    assert state.document_result is None
    assert state.mismatch is None


def test_document_result_needs_captured_image():
    with pytest.raises(InvalidTransition):
        transition(SessionState(), DocumentEvaluated(doc_outcome()))


def test_selfie_capture_only_at_face():
    with pytest.raises(InvalidTransition):
        transition(SessionState(), SelfieCaptured(SELFIE))


def test_document_capture_not_allowed_at_face():
    with pytest.raises(InvalidTransition):
        transition(at_face(), DocumentCaptured(DOC))


def test_face_result_without_selfie_rejected():
    with pytest.raises(InvalidTransition):
        transition(at_face(), FaceEvaluated(face_outcome()))


def test_face_result_at_document_rejected():
    with pytest.raises(InvalidTransition):
        run(DocumentCaptured(DOC), FaceEvaluated(face_outcome()))


@pytest.mark.parametrize("decision,outcome", [
    ("AUTO_PASS", VerificationOutcome.VERIFIED),
    ("MANUAL_REVIEW", VerificationOutcome.FLAGGED),
])
def test_face_pass_or_review_finishes(decision, outcome):
    state = run(SelfieCaptured(SELFIE), FaceEvaluated(face_outcome(decision)), state=at_face())
    assert state.step is Step.DONE
    assert state.outcome is outcome
    assert state.is_complete and state.is_closed
    # Images are discarded on completion, results are kept
    assert state.document_image is None and state.selfie_image is None
    assert state.face_result is not None and state.document_result is not None


def test_face_fail_stays_at_face():
    state = run(SelfieCaptured(SELFIE), FaceEvaluated(face_outcome("FAIL")), state=at_face())
    assert state.step is Step.FACE
    assert state.outcome is None
    assert state.selfie_image is SELFIE


def test_retake_selfie_clears_only_face():
    state = run(SelfieCaptured(SELFIE), FaceEvaluated(face_outcome("FAIL")), Retake(Stage.FACE),
                state=at_face())
    assert state.step is Step.FACE
    assert state.selfie_image is None and state.face_result is None
    assert state.document_image is DOC and state.document_result is not None


def test_retake_document_from_face_returns_to_document():
    state = run(SelfieCaptured(SELFIE), FaceEvaluated(face_outcome("FAIL")), Retake(Stage.DOCUMENT),
                state=at_face())
    assert state.step is Step.DOCUMENT
    assert state == SessionState()


def test_retake_document_at_document():
    state = run(DocumentCaptured(DOC), DocumentEvaluated(doc_outcome(mismatches=["Gender"])),
                Retake(Stage.DOCUMENT))
    assert state.step is Step.DOCUMENT
    assert state.document_image is None and state.mismatch is None and state.document_result is None


def test_retake_selfie_at_document_rejected():
    with pytest.raises(InvalidTransition):
        transition(SessionState(), Retake(Stage.FACE))


def test_reset_returns_to_initial_state():
    assert run(SelfieCaptured(SELFIE), Reset(), state=at_face()) == SessionState()


def test_abandon_discards_images_and_closes():
    state = run(SelfieCaptured(SELFIE), Abandon(), state=at_face())
    assert state.abandoned and state.is_closed
    assert state.document_image is None and state.selfie_image is None
    with pytest.raises(SessionClosed):
        transition(state, Reset())


def test_done_session_accepts_no_events():
    done = run(SelfieCaptured(SELFIE), FaceEvaluated(face_outcome()), state=at_face())
    for event in (Retake(Stage.DOCUMENT), Retake(Stage.FACE), Reset(), SelfieCaptured(SELFIE), Abandon()):
        with pytest.raises(SessionClosed):
            transition(done, event)


def test_step_sequence_only_moves_forward_without_retake():
    events = [
        DocumentCaptured(DOC),
        DocumentEvaluated(doc_outcome(mismatches=["Name"])),
        DocumentCaptured(DOC),
        DocumentEvaluated(doc_outcome()),
        SelfieCaptured(SELFIE),
        FaceEvaluated(face_outcome("FAIL")),
        SelfieCaptured(SELFIE),
        FaceEvaluated(face_outcome("MANUAL_REVIEW")),
    ]
    order = [Step.DOCUMENT, Step.FACE, Step.DONE]
    state = SessionState()
    seen = [state.step]
    for event in events:
        state = transition(state, event)
        assert order.index(state.step) >= order.index(seen[-1])
        seen.append(state.step)
    assert seen[-1] is Step.DONE
