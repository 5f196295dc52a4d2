"""Domain models for the compassion fatigue survey."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Optional


SEXES = ("Homme", "Femme")
MARITAL_STATES = ("Marié", "Célibataire", "Divorcé")
DEPARTMENTS = ("SAMU", "Urgence", "Réanimation", "USIC")


class WizardState(Enum):
    """States in the quiz wizard flow."""
    INTAKE = auto()
    LOADING = auto()
    ANSWERING = auto()
    SUBMITTING = auto()
    COMPLETE = auto()
    ERROR = auto()


@dataclass
class PatientProfile:
    """Caregiver intake form. ``None`` means the field was left unset."""
    age: Optional[int] = None
    sex: Optional[str] = None
    marital_state: Optional[str] = None
    child_count: Optional[int] = None
    years_experience: Optional[int] = None
    department: Optional[str] = None
    years_in_current_department: Optional[int] = None


@dataclass(frozen=True)
class Question:
    """A survey question, in the order the service returns it."""
    id: str
    text: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ResponseOption:
    """One of the answer choices shared by every question."""
    id: str
    text: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Answer:
    """The response chosen for a question."""
    question_id: str
    response_id: str


@dataclass(frozen=True)
class SubmissionPayload:
    """Flattened profile plus ordered answers, as posted to /api/submissions."""
    age: int
    sex: str
    marital_state: str
    child_count: int
    years_experience: int
    department: str
    years_in_current_department: int
    answers: tuple[Answer, ...]

    @classmethod
    def build(cls, profile: PatientProfile, answers: list[Answer]) -> "SubmissionPayload":
        return cls(
            age=profile.age,
            sex=profile.sex,
            marital_state=profile.marital_state,
            child_count=profile.child_count,
            years_experience=profile.years_experience,
            department=profile.department,
            years_in_current_department=profile.years_in_current_department,
            answers=tuple(answers),
        )

    def to_json(self) -> dict[str, Any]:
        """Wire format expected by the statistics service."""
        return {
            "age": self.age,
            "sex": self.sex,
            "state": self.marital_state,
            "nbChilds": self.child_count,
            "expYears": self.years_experience,
            "service": self.department,
            "expYearsC": self.years_in_current_department,
            "answers": [
                {"questionId": a.question_id, "responseId": a.response_id}
                for a in self.answers
            ],
        }


@dataclass
class WizardSession:
    """Runtime state of one quiz wizard (not persisted)."""
    session_id: str
    state: WizardState = WizardState.INTAKE
    profile: PatientProfile = field(default_factory=PatientProfile)
    profile_errors: dict[str, str] = field(default_factory=dict)
    questions: list[Question] = field(default_factory=list)
    responses: list[ResponseOption] = field(default_factory=list)
    answers: dict[str, str] = field(default_factory=dict)  # question id -> response id
    current_index: int = 0
    direction: int = 0  # +1 forward, -1 backward; presentation only
    payload: Optional[SubmissionPayload] = None
    submitted: bool = False
    notice: Optional[str] = None
    generation: int = 0
    created_at: datetime = field(default_factory=datetime.now)
