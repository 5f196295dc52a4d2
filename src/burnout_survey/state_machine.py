"""Quiz wizard state machine for the compassion fatigue questionnaire."""

import asyncio
import logging
from typing import Optional

from .errors import ValidationError
from .gateway.base import PUBLIC_ACCESS_TOKEN, StatisticsGateway
from .intake import require_valid_profile, update_profile
from .models import (
    Answer,
    PatientProfile,
    Question,
    ResponseOption,
    SubmissionPayload,
    WizardSession,
    WizardState,
)


logger = logging.getLogger(__name__)

EMPTY_QUIZ_NOTICE = "Failed to load quiz data"


class QuizWizard:
    """Drives one wizard session from intake to submission.

    The same machine serves the authenticated and the public quiz; the
    public variant is selected by passing the public access token.
    """

    def __init__(self, session: WizardSession, gateway: StatisticsGateway, token: str = PUBLIC_ACCESS_TOKEN):
        self.session = session
        self.gateway = gateway
        self.token = token

    @property
    def is_public(self) -> bool:
        return self.token == PUBLIC_ACCESS_TOKEN

    @property
    def state(self) -> WizardState:
        return self.session.state

    @property
    def _tag(self) -> str:
        return f"[SESSION {self.session.session_id[:8]}]"

    # Presentation helpers

    @property
    def current_question(self) -> Optional[Question]:
        if self.session.state not in (WizardState.ANSWERING, WizardState.SUBMITTING):
            return None
        if not self.session.questions:
            return None
        return self.session.questions[self.session.current_index]

    @property
    def selected_response(self) -> Optional[str]:
        question = self.current_question
        if question is None:
            return None
        return self.session.answers.get(question.id)

    @property
    def is_last_question(self) -> bool:
        return self.session.current_index == len(self.session.questions) - 1

    @property
    def can_advance(self) -> bool:
        return self.session.state == WizardState.ANSWERING and self.selected_response is not None

    @property
    def can_go_back(self) -> bool:
        return self.session.state == WizardState.ANSWERING and self.session.current_index > 0

    @property
    def progress(self) -> float:
        if not self.session.questions:
            return 0.0
        return self.session.current_index / len(self.session.questions) * 100

    def take_notice(self) -> Optional[str]:
        """Return the pending notice once, then clear it."""
        notice, self.session.notice = self.session.notice, None
        return notice

    # Intake

    def set_field(self, field_name: str, raw: Optional[str]) -> None:
        """Record one intake field from its raw form value."""
        if self.session.state not in (WizardState.INTAKE, WizardState.ERROR):
            return
        update_profile(self.session.profile, field_name, raw)
        self.session.profile_errors.pop(field_name, None)

    async def submit_intake(self) -> dict[str, str]:
        """Validate the profile, then load the quiz.

        Returns the validation errors, empty when the profile was accepted.
        """
        if self.session.state not in (WizardState.INTAKE, WizardState.ERROR):
            return {}

        try:
            require_valid_profile(self.session.profile)
        except ValidationError as e:
            self.session.profile_errors = e.errors
            self.session.state = WizardState.INTAKE
            self.session.notice = e.message
            logger.info("%s Intake rejected (%d invalid fields)", self._tag, len(e.errors))
            return e.errors

        self.session.profile_errors = {}
        await self._load()
        return {}

    async def _load(self) -> None:
        """Fetch questions and responses together; both must succeed."""
        self.session.state = WizardState.LOADING
        self.session.generation += 1
        generation = self.session.generation
        logger.info("%s Loading quiz (%s)", self._tag, "public" if self.is_public else "authenticated")

        questions_result, responses_result = await asyncio.gather(
            self.gateway.fetch_questions(self.token),
            self.gateway.fetch_responses(self.token),
        )

        if generation != self.session.generation:
            logger.info("%s Discarding stale quiz load", self._tag)
            return

        for result in (questions_result, responses_result):
            if not result.ok:
                self.session.state = WizardState.ERROR
                self.session.notice = result.error.message
                logger.warning("%s Quiz load failed: %s", self._tag, result.error.message)
                return

        questions: list[Question] = questions_result.data
        responses: list[ResponseOption] = responses_result.data
        if not questions or not responses:
            self.session.state = WizardState.ERROR
            self.session.notice = EMPTY_QUIZ_NOTICE
            logger.warning("%s Quiz load returned no questions or responses", self._tag)
            return

        self.session.questions = list(questions)
        self.session.responses = list(responses)
        self.session.answers = {}
        self.session.payload = None
        self.session.current_index = 0
        self.session.direction = 0
        self.session.state = WizardState.ANSWERING
        logger.info("%s Quiz loaded: %d questions", self._tag, len(questions))

    def close(self) -> None:
        """Leave the error screen and return to the intake form."""
        if self.session.state == WizardState.ERROR:
            self.session.state = WizardState.INTAKE

    # Answering

    def select_response(self, question_id: str, response_id: str) -> bool:
        """Record (or replace) the answer to the current question."""
        question = self.current_question
        if self.session.state != WizardState.ANSWERING or question is None:
            return False
        if question.id != question_id:
            logger.debug("%s Ignoring answer for non-current question", self._tag)
            return False
        if not any(r.id == response_id for r in self.session.responses):
            logger.debug("%s Ignoring unknown response id", self._tag)
            return False

        if self.session.answers.get(question_id) != response_id:
            # A retained payload from a failed send no longer matches.
            self.session.payload = None
        self.session.answers[question_id] = response_id
        return True

    async def advance(self) -> bool:
        """Move forward, submitting after the last question.

        A no-op while the current question has no answer.
        """
        if not self.can_advance:
            return False

        if not self.is_last_question:
            self.session.current_index += 1
            self.session.direction = 1
            return True

        return await self._submit()

    def back(self) -> bool:
        """Move to the previous question."""
        if not self.can_go_back:
            return False
        self.session.current_index -= 1
        self.session.direction = -1
        return True

    def ordered_answers(self) -> list[Answer]:
        """Answers in question order."""
        return [
            Answer(question_id=q.id, response_id=self.session.answers[q.id])
            for q in self.session.questions
            if q.id in self.session.answers
        ]

    async def _submit(self) -> bool:
        """Send the assembled payload once."""
        if self.session.submitted:
            return False

        if self.session.payload is None:
            self.session.payload = SubmissionPayload.build(self.session.profile, self.ordered_answers())
        payload = self.session.payload

        self.session.state = WizardState.SUBMITTING
        generation = self.session.generation
        logger.info("%s Submitting %d answers", self._tag, len(payload.answers))

        try:
            result = await self.gateway.submit(self.token, payload)
        except BaseException:
            # Interrupted sends (e.g. client disconnect) must not strand the wizard.
            if generation == self.session.generation:
                self._return_to_last_question()
            logger.warning("%s Submission interrupted", self._tag)
            raise

        if generation != self.session.generation:
            logger.info("%s Discarding stale submission result", self._tag)
            return False

        if not result.ok:
            self._return_to_last_question()
            self.session.notice = result.error.message
            logger.warning("%s Submission failed: %s", self._tag, result.error.message)
            return False

        self.session.submitted = True
        self.session.state = WizardState.COMPLETE
        logger.info("%s Submission recorded", self._tag)
        return True

    # Lifecycle

    def _return_to_last_question(self) -> None:
        """Leave SUBMITTING for the last question; the payload is kept for resending."""
        if self.session.state == WizardState.SUBMITTING:
            self.session.state = WizardState.ANSWERING
            self.session.current_index = len(self.session.questions) - 1

    def cancel(self) -> None:
        """Abandon any in-flight load or send, e.g. when the user navigates away."""
        self.session.generation += 1
        if self.session.state == WizardState.LOADING:
            self.session.state = WizardState.INTAKE
        elif self.session.state == WizardState.SUBMITTING:
            self._return_to_last_question()

    def restart(self) -> None:
        """Reset every entity and return to the intake form."""
        self.session.generation += 1
        self.session.state = WizardState.INTAKE
        self.session.profile = PatientProfile()
        self.session.profile_errors = {}
        self.session.questions = []
        self.session.responses = []
        self.session.answers = {}
        self.session.current_index = 0
        self.session.direction = 0
        self.session.payload = None
        self.session.submitted = False
        self.session.notice = None
        logger.info("%s Wizard restarted", self._tag)
