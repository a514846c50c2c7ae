"""
Verification session state and its transition function.

``SessionState`` is immutable; ``transition(state, event)`` returns the next
state or raises a FlowError if the event is not allowed from the current
one. All of the flow's rules live here so they can be exercised without a
backend:

    Document --(accepted document)--> Face --(AUTO_PASS | MANUAL_REVIEW)--> Done

A mismatch or a failed document keeps the session at Document, a failed
face check keeps it at Face. Retaking an image clears that stage; retaking
the document from Face also drops the selfie and returns to Document.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from .decision import Completed, Proceed, resolve_document, resolve_face
from .errors import InvalidTransition, SessionClosed
from .models import (
    CapturedImage, DocumentOutcome, FaceOutcome, MismatchInfo, Stage, Step,
    VerificationOutcome
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    step: Step = Step.DOCUMENT
    document_image: Optional[CapturedImage] = None
    selfie_image: Optional[CapturedImage] = None
    document_result: Optional[DocumentOutcome] = None
    mismatch: Optional[MismatchInfo] = None
    face_result: Optional[FaceOutcome] = None
    outcome: Optional[VerificationOutcome] = None
    abandoned: bool = False

    @property
    def is_complete(self) -> bool:
        return self.step is Step.DONE

    @property
    def is_closed(self) -> bool:
        return self.is_complete or self.abandoned

    @property
    def document_accepted(self) -> bool:
        """True when a document result exists and does not block the flow"""
        return (
            self.document_result is not None
            and isinstance(resolve_document(self.document_result), Proceed)
        )

    @property
    def can_submit_document(self) -> bool:
        return (not self.is_closed
                and self.step is Step.DOCUMENT
                and self.document_image is not None)

    @property
    def can_submit_face(self) -> bool:
        return (not self.is_closed
                and self.step is Step.FACE
                and self.document_image is not None
                and self.selfie_image is not None
                and self.document_accepted)


# ------------------------
# Events
# ------------------------
@dataclass(frozen=True)
class DocumentCaptured:
    image: CapturedImage


@dataclass(frozen=True)
class DocumentEvaluated:
    outcome: DocumentOutcome


@dataclass(frozen=True)
class SelfieCaptured:
    image: CapturedImage


@dataclass(frozen=True)
class FaceEvaluated:
    outcome: FaceOutcome


@dataclass(frozen=True)
class Retake:
    stage: Stage


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class Abandon:
    pass


Event = Union[DocumentCaptured, DocumentEvaluated, SelfieCaptured, FaceEvaluated, Retake, Reset, Abandon]


# ------------------------
# Transitions
# ------------------------
def _require_step(state: SessionState, step: Step, action: str) -> None:
    if state.step is not step:
        raise InvalidTransition(f"Cannot {action} while at step '{state.step.value}'")


def _on_document_captured(state: SessionState, event: DocumentCaptured) -> SessionState:
    _require_step(state, Step.DOCUMENT, "capture a document")
    return replace(state, document_image=event.image, document_result=None, mismatch=None)


def _on_document_evaluated(state: SessionState, event: DocumentEvaluated) -> SessionState:
    _require_step(state, Step.DOCUMENT, "record a document result")
    if state.document_image is None:
        raise InvalidTransition("No document image was captured")

    outcome = event.outcome
    mismatch = outcome.mismatch if outcome.mismatch.has_any else None
    state = replace(state, document_result=outcome, mismatch=mismatch)

    if isinstance(resolve_document(outcome), Proceed):
        return replace(state, step=Step.FACE)
    return state


def _on_selfie_captured(state: SessionState, event: SelfieCaptured) -> SessionState:
    _require_step(state, Step.FACE, "capture a selfie")
    return replace(state, selfie_image=event.image, face_result=None)


def _on_face_evaluated(state: SessionState, event: FaceEvaluated) -> SessionState:
    _require_step(state, Step.FACE, "record a face result")
    if state.selfie_image is None:
        raise InvalidTransition("No selfie image was captured")
    if not state.document_accepted:
        raise InvalidTransition("Face result recorded without an accepted document")

    state = replace(state, face_result=event.outcome)
    resolution = resolve_face(event.outcome)
    if isinstance(resolution, Completed):
        # Captured images are not kept once the flow is finished
        return replace(
            state,
            step=Step.DONE,
            outcome=resolution.outcome,
            document_image=None,
            selfie_image=None,
        )
    return state


def _on_retake(state: SessionState, event: Retake) -> SessionState:
    if event.stage is Stage.DOCUMENT:
        # The identity claim changes with the document, so the face step goes too
        return replace(
            state,
            step=Step.DOCUMENT,
            document_image=None,
            document_result=None,
            mismatch=None,
            selfie_image=None,
            face_result=None,
        )

    _require_step(state, Step.FACE, "retake the selfie")
    return replace(state, selfie_image=None, face_result=None)


_HANDLERS = {
    DocumentCaptured: _on_document_captured,
    DocumentEvaluated: _on_document_evaluated,
    SelfieCaptured: _on_selfie_captured,
    FaceEvaluated: _on_face_evaluated,
    Retake: _on_retake,
}


def transition(state: SessionState, event: Event) -> SessionState:
    """Apply one event to the session and return the resulting state"""
    if state.is_closed:
        raise SessionClosed()

    if isinstance(event, Abandon):
        new_state = SessionState(step=state.step, abandoned=True)
    elif isinstance(event, Reset):
        new_state = SessionState()
    else:
        handler = _HANDLERS.get(type(event))
        if handler is None:
            raise InvalidTransition(f"Unknown event: {event!r}")
        new_state = handler(state, event)

    if new_state.step is not state.step:
        logger.info("Session step %s -> %s", state.step.value, new_state.step.value)
    return new_state
