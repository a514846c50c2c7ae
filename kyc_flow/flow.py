import logging
from typing import Callable, List, Optional

from .decision import (
    DocumentResolution, FaceResolution, resolve_document, resolve_face
)
from .document_stage import DocumentStage
from .errors import InvalidTransition, SessionClosed, SubmissionInProgress
from .face_stage import FaceStage
from .models import CapturedImage, ExpectedIdentity, Stage, Step
from .quality import QualityGate
from .session import (
    Abandon, DocumentCaptured, DocumentEvaluated, Event, FaceEvaluated, Reset,
    Retake, SelfieCaptured, SessionState, transition
)
from .transport import OracleTransport

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]


class VerificationFlow:
    """
    Drives one verification attempt from document capture to completion.

    Owns the session state, runs captures through the quality gate, calls the
    document and face stages and feeds their results through ``transition``.
    Every change is published to subscribed listeners. One flow per attempt:
    after Done or ``abandon()`` every mutating call raises SessionClosed.
    """

    def __init__(self,
                 expected: ExpectedIdentity,
                 transport: Optional[OracleTransport] = None,
                 quality_gate: Optional[QualityGate] = None,
                 document_stage: Optional[DocumentStage] = None,
                 face_stage: Optional[FaceStage] = None):
        self.expected = expected
        transport = transport or OracleTransport()
        self.quality_gate = quality_gate or QualityGate()
        self.document_stage = document_stage or DocumentStage(transport)
        self.face_stage = face_stage or FaceStage(transport)
        self._state = SessionState()
        self._listeners: List[Listener] = []

    # ------------------------
    # Observation
    # ------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def step(self) -> Step:
        return self._state.step

    @property
    def is_uploading(self) -> bool:
        return self.document_stage.guard.busy or self.face_stage.guard.busy

    @property
    def is_validating(self) -> bool:
        # Upload and server-side validation are one request here
        return self.is_uploading

    @property
    def is_complete(self) -> bool:
        return self._state.is_complete

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _dispatch(self, event: Event) -> SessionState:
        self._state = transition(self._state, event)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def _ensure_idle(self, stage: Stage) -> None:
        guard = self.document_stage.guard if stage is Stage.DOCUMENT else self.face_stage.guard
        if guard.busy:
            raise SubmissionInProgress(f"A {stage.value} submission is already in progress")

    # ------------------------
    # Document
    # ------------------------
    def capture_document(self, image: CapturedImage) -> SessionState:
        if self._state.is_closed:
            raise SessionClosed()
        self._ensure_idle(Stage.DOCUMENT)
        self.quality_gate.admit(image)
        return self._dispatch(DocumentCaptured(image))

    def submit_document(self) -> DocumentResolution:
        state = self._state
        if state.is_closed:
            raise SessionClosed()
        if state.step is not Step.DOCUMENT:
            raise InvalidTransition("Document was already accepted; retake it to submit again")
        if state.document_image is None:
            raise InvalidTransition("Capture a document before submitting")

        outcome = self.document_stage.submit(state.document_image, self.expected)
        self._dispatch(DocumentEvaluated(outcome))
        return resolve_document(outcome)

    # ------------------------
    # Face
    # ------------------------
    def capture_selfie(self, image: CapturedImage) -> SessionState:
        if self._state.is_closed:
            raise SessionClosed()
        self._ensure_idle(Stage.FACE)
        self.quality_gate.admit(image)
        return self._dispatch(SelfieCaptured(image))

    def submit_face(self) -> FaceResolution:
        state = self._state
        if state.is_closed:
            raise SessionClosed()
        if state.step is not Step.FACE or not state.document_accepted:
            raise InvalidTransition("Face verification needs an accepted document")
        if state.selfie_image is None:
            raise InvalidTransition("Capture a selfie before submitting")

        outcome = self.face_stage.submit(state.document_image, state.selfie_image, self.expected)
        self._dispatch(FaceEvaluated(outcome))
        return resolve_face(outcome)

    # ------------------------
    # Retake / reset
    # ------------------------
    def retake(self, stage: Stage) -> SessionState:
        self._ensure_idle(stage)
        if stage is Stage.DOCUMENT:
            self._ensure_idle(Stage.FACE)
        return self._dispatch(Retake(stage))

    def reset(self) -> SessionState:
        self._ensure_idle(Stage.DOCUMENT)
        self._ensure_idle(Stage.FACE)
        return self._dispatch(Reset())

    def abandon(self) -> SessionState:
        return self._dispatch(Abandon())
