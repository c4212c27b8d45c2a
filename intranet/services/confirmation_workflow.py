"""
Confirmation workflow for mandatory contents

State machine (one instance per user and pending content):

    consuming -> [quiz_pending -> quiz_graded] -> confirmable -> confirming -> confirmed

- video: only a playback "ended" event moves consuming -> confirmable
- text: the reading gate opens when the viewport reaches the bottom of the
  content; a quiz, when present, must then be graded with every answer correct
"""
import logging
import threading
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from intranet.schemas.mandatory_content import QuizQuestion, QuizGradingResponse
from intranet.services.grading_service import grading_service

logger = logging.getLogger(__name__)

CONFIRMATION_TEXTS = {
    "video": "Confirmo que assisti integralmente e estou ciente das informações acima.",
    "text": "Confirmo que li, entendi e estou ciente das informações acima.",
}


class WorkflowState(str, Enum):
    CONSUMING = "consuming"
    QUIZ_PENDING = "quiz_pending"
    QUIZ_GRADED = "quiz_graded"
    CONFIRMABLE = "confirmable"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"


class WorkflowError(Exception):
    """Transition refused by the state machine"""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class ConfirmationWorkflow:
    """
    Per-user progress through one mandatory content

    quiz=None means the content has no quiz; an empty list is a quiz with
    no questions and still needs one submission.
    """

    def __init__(
        self,
        content_id: UUID,
        content_type: str,
        quiz: Optional[List[QuizQuestion]] = None,
        scroll_tolerance_px: int = 10,
        version: Optional[str] = None
    ):
        if content_type not in CONFIRMATION_TEXTS:
            raise ValueError(f"Unknown content type: {content_type}")

        self.content_id = content_id
        self.content_type = content_type
        self.quiz = quiz if content_type == "text" else None
        self.scroll_tolerance_px = scroll_tolerance_px
        self.version = version

        self.video_ended = False
        self.scrolled_to_end = False
        self.quiz_results: Optional[QuizGradingResponse] = None

        self._state = WorkflowState.CONSUMING
        self._lock = threading.Lock()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def has_quiz(self) -> bool:
        return self.quiz is not None

    @property
    def quiz_unlocked(self) -> bool:
        return self.has_quiz and self.scrolled_to_end

    @property
    def can_confirm(self) -> bool:
        return self._state == WorkflowState.CONFIRMABLE

    @property
    def score(self) -> int:
        """100 for video and quiz-less text, quiz percentage otherwise"""
        if self.content_type == "text" and self.quiz_results is not None:
            return self.quiz_results.score
        return 100

    @property
    def confirmation_text(self) -> str:
        return CONFIRMATION_TEXTS[self.content_type]

    def _refresh_state(self) -> None:
        if self._state in (WorkflowState.CONFIRMING, WorkflowState.CONFIRMED):
            return

        if self.content_type == "video":
            self._state = WorkflowState.CONFIRMABLE if self.video_ended else WorkflowState.CONSUMING
        elif not self.scrolled_to_end:
            self._state = WorkflowState.CONSUMING
        elif not self.has_quiz:
            self._state = WorkflowState.CONFIRMABLE
        elif self.quiz_results is None:
            self._state = WorkflowState.QUIZ_PENDING
        elif self.quiz_results.all_correct:
            self._state = WorkflowState.CONFIRMABLE
        else:
            self._state = WorkflowState.QUIZ_GRADED

    def _ensure_open(self) -> None:
        if self._state == WorkflowState.CONFIRMING:
            raise WorkflowError("confirmation_in_progress", "A confirmação já está sendo registrada")
        if self._state == WorkflowState.CONFIRMED:
            raise WorkflowError("already_confirmed", "Conteúdo já confirmado")

    def record_playback(self, event: str, position: Optional[float] = None) -> bool:
        """
        Apply a media element event

        Only the end-of-stream event counts; seeking or pausing at the last
        second does not complete the video.
        """
        if self.content_type != "video":
            raise WorkflowError("wrong_content_type", "Este conteúdo não é um vídeo")
        self._ensure_open()

        if event == "ended" and not self.video_ended:
            logger.info(f"Video {self.content_id} watched to the end")
            self.video_ended = True
        else:
            logger.debug(f"Playback event ignored for {self.content_id}: {event} at {position}")

        self._refresh_state()
        return self.video_ended

    def record_scroll(self, scroll_top: float, scroll_height: float, client_height: float) -> bool:
        """Open the reading gate once the viewport reaches the bottom"""
        if self.content_type != "text":
            raise WorkflowError("wrong_content_type", "Este conteúdo não é um texto")
        self._ensure_open()

        reached_bottom = scroll_height - scroll_top <= client_height + self.scroll_tolerance_px
        if reached_bottom and not self.scrolled_to_end:
            logger.info(f"Text {self.content_id} scrolled to the end")
            self.scrolled_to_end = True

        self._refresh_state()
        return self.scrolled_to_end

    def submit_quiz(self, answers: Dict[int, str]) -> QuizGradingResponse:
        """
        Grade a quiz submission, replacing any previous grading snapshot

        Raises:
            WorkflowError: no quiz, or reading gate still closed
            QuizIncompleteError: some question has no answer (nothing changes)
        """
        if not self.has_quiz:
            raise WorkflowError("no_quiz", "Este conteúdo não possui avaliação")
        self._ensure_open()
        if not self.scrolled_to_end:
            raise WorkflowError("reading_incomplete", "Role o texto até o fim antes de responder")

        results = grading_service.grade_quiz(self.quiz, answers)
        self.quiz_results = results
        self._refresh_state()
        return results

    def begin_confirmation(self) -> None:
        """Take the in-flight lock; concurrent confirmations are refused"""
        with self._lock:
            self._ensure_open()
            if self._state != WorkflowState.CONFIRMABLE:
                raise WorkflowError("not_confirmable", "Conclua o conteúdo antes de confirmar")
            self._state = WorkflowState.CONFIRMING

    def complete_confirmation(self) -> None:
        with self._lock:
            self._state = WorkflowState.CONFIRMED

    def abort_confirmation(self) -> None:
        """Release the lock after a failed write; the user may confirm again"""
        with self._lock:
            if self._state == WorkflowState.CONFIRMING:
                self._state = WorkflowState.CONFIRMABLE


class WorkflowRegistry:
    """
    In-memory workflows keyed by (user_id, content_id)
    Production with several workers: sticky sessions or a shared store
    """

    def __init__(self):
        self._workflows: Dict[Tuple[str, str], ConfirmationWorkflow] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        user_id: UUID,
        content_id: UUID,
        content_type: str,
        quiz: Optional[List[QuizQuestion]],
        scroll_tolerance_px: int,
        version: Optional[str] = None
    ) -> ConfirmationWorkflow:
        key = (str(user_id), str(content_id))
        with self._lock:
            workflow = self._workflows.get(key)
            # An edited content restarts the workflow
            if workflow is None or workflow.version != version:
                workflow = ConfirmationWorkflow(
                    content_id=content_id,
                    content_type=content_type,
                    quiz=quiz,
                    scroll_tolerance_px=scroll_tolerance_px,
                    version=version
                )
                self._workflows[key] = workflow
            return workflow

    def get(self, user_id: UUID, content_id: UUID) -> Optional[ConfirmationWorkflow]:
        return self._workflows.get((str(user_id), str(content_id)))

    def discard(self, user_id: UUID, content_id: UUID) -> None:
        with self._lock:
            self._workflows.pop((str(user_id), str(content_id)), None)

    def discard_user(self, user_id: UUID, keep: Optional[UUID] = None) -> None:
        """Drop the user's workflows other than the one for `keep`"""
        user_key = str(user_id)
        keep_key = str(keep) if keep is not None else None
        with self._lock:
            for key in [k for k in self._workflows if k[0] == user_key and k[1] != keep_key]:
                del self._workflows[key]

    def discard_content(self, content_id: UUID) -> None:
        content_key = str(content_id)
        with self._lock:
            for key in [k for k in self._workflows if k[1] == content_key]:
                del self._workflows[key]

    def clear(self) -> None:
        with self._lock:
            self._workflows.clear()

    def __len__(self) -> int:
        return len(self._workflows)


# Global instance
workflow_registry = WorkflowRegistry()
