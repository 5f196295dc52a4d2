"""Shared fixtures: an in-memory statistics gateway and sample aggregates."""

from typing import Any, Optional

import pytest

from burnout_survey.errors import ApiError, FetchError
from burnout_survey.gateway.base import (
    CUSTOM_STATS_ENDPOINT,
    DETAILED_STATS_ENDPOINT,
    GLOBAL_STATS_ENDPOINT,
    PUBLIC_ACCESS_TOKEN,
    QUESTIONS_ENDPOINT,
    RESPONSES_ENDPOINT,
    SUBMISSIONS_ENDPOINT,
    TABLE_STATS_ENDPOINT,
    ApiResult,
    StatisticsGateway,
)
from burnout_survey.models import PatientProfile


QUESTION_ROWS = [
    {"id": "q1", "question_text": "Je me sens épuisé(e)", "created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-01T00:00:00Z"},
    {"id": "q2", "question_text": "Je dors mal", "created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-01T00:00:00Z"},
    {"id": "q3", "question_text": "Je revis des scènes difficiles", "created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-01T00:00:00Z"},
]

RESPONSE_ROWS = [
    {"id": "r1", "response_text": "Jamais", "created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-01T00:00:00Z"},
    {"id": "r2", "response_text": "Souvent", "created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-01T00:00:00Z"},
]

DETAILED_STATS = {
    "totalSubmissions": 42,
    "demographics": {
        "bySex": {"Homme": 40, "Femme": 60},
        "byMaritalState": {"Marié": 50, "Célibataire": 30, "Divorcé": 20},
        "byService": {"SAMU": 25, "Urgence": 25, "Réanimation": 25, "USIC": 25},
        "sexByMaritalState": {"Homme": {"Marié": 20, "Célibataire": 15}, "Femme": {"Marié": 30, "Célibataire": 15}},
        "sexByService": {"Homme": {"SAMU": 10}, "Femme": {"SAMU": 15}},
        "maritalStateByService": {"Marié": {"SAMU": 12}},
    },
    "questions": [
        {
            "questionId": "q1",
            "questionText": "Je me sens épuisé(e)",
            "responseBySex": {"Homme": {"Jamais": 30, "Souvent": 70}, "Femme": {"Jamais": 45, "Souvent": 55}},
            "responseByMaritalState": {},
            "responseByService": {"SAMU": {"Jamais": 50, "Souvent": 50}},
        }
    ],
}

TABLE_STATS = {
    "genders": [{"type": "Homme", "effectif": 17, "percentage": 40}],
    "ages": [{"type": "18-30", "effectif": 20, "percentage": 48}],
    "state": [],
    "exp_years": [],
    "exp_years_c": [],
    "service": [{"type": "SAMU", "effectif": 10, "percentage": 24}],
    "nb_childs": [],
}

GLOBAL_STATS = {
    "global": [
        {"score": "score 36-40", "value": 20},
        {"score": "score 0-26", "value": 40},
        {"score": "score > 41", "value": 10},
    ],
    "genders": [
        {"type": "Homme", "score": [{"score": "score 31-35", "value": 30}, {"score": "score 0-26", "value": 70}]},
        {"type": "Femme", "score": [{"score": "score 0-26", "value": 50}]},
    ],
}

CUSTOM_STATS = {
    "group2": [{"score": "score 27-30", "value": 15}, {"score": "score 0-26", "value": 85}],
    "group1": [{"score": "score 0-26", "value": 60}],
}


class FakeGateway(StatisticsGateway):
    """Statistics gateway answering from canned results and recording calls."""

    def __init__(self, results: Optional[dict[str, Any]] = None):
        self.results: dict[str, Any] = {
            QUESTIONS_ENDPOINT: QUESTION_ROWS,
            RESPONSES_ENDPOINT: RESPONSE_ROWS,
            SUBMISSIONS_ENDPOINT: {"id": "s1"},
            DETAILED_STATS_ENDPOINT: DETAILED_STATS,
            TABLE_STATS_ENDPOINT: TABLE_STATS,
            GLOBAL_STATS_ENDPOINT: GLOBAL_STATS,
            CUSTOM_STATS_ENDPOINT: CUSTOM_STATS,
        }
        self.results.update(results or {})
        self.calls: list[dict[str, Any]] = []
        self.login_result = ApiResult(data={"token": "secret-token", "name": "Infirmier Test"})

    async def call(self, endpoint, token=PUBLIC_ACCESS_TOKEN, method="GET", body=None, action="contact the statistics service"):
        self.calls.append({"endpoint": endpoint, "token": token, "method": method, "body": body})
        result = self.results[endpoint]
        if isinstance(result, ApiError):
            return ApiResult(error=result)
        return ApiResult(data=result)

    async def login(self, email, password):
        self.calls.append({"endpoint": "login", "email": email})
        return self.login_result

    def calls_to(self, endpoint: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["endpoint"] == endpoint]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def failing_submission_gateway() -> FakeGateway:
    return FakeGateway({SUBMISSIONS_ENDPOINT: ApiError("db error", status_code=500)})


@pytest.fixture
def offline_gateway() -> FakeGateway:
    return FakeGateway({
        QUESTIONS_ENDPOINT: FetchError("Network error while trying to fetch questions"),
    })


@pytest.fixture
def valid_profile() -> PatientProfile:
    return PatientProfile(
        age=34,
        sex="Femme",
        marital_state="Marié",
        child_count=2,
        years_experience=10,
        department="SAMU",
        years_in_current_department=4,
    )
