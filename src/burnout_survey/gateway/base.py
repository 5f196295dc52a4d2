"""Abstract gateway to the remote statistics service."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..errors import ApiError
from ..models import Question, ResponseOption, SubmissionPayload


PUBLIC_ACCESS_TOKEN = "public_access"

QUESTIONS_ENDPOINT = "/api/questions"
RESPONSES_ENDPOINT = "/api/responses"
SUBMISSIONS_ENDPOINT = "/api/submissions"
DETAILED_STATS_ENDPOINT = "/api/submissions/detailed-stats"
TABLE_STATS_ENDPOINT = "/api/stats"
GLOBAL_STATS_ENDPOINT = "/api/global"
CUSTOM_STATS_ENDPOINT = "/api/global-custom"

# Reference data that does not change during a quiz run.
CACHEABLE_ENDPOINTS = frozenset({QUESTIONS_ENDPOINT, RESPONSES_ENDPOINT})


@dataclass(frozen=True)
class ApiResult:
    """Outcome of a gateway call: decoded JSON or an error, never both."""
    data: Any = None
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the data or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.data


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return None


class StatisticsGateway(ABC):
    """Sole point of contact with the statistics service."""

    @abstractmethod
    async def call(
        self,
        endpoint: str,
        token: str = PUBLIC_ACCESS_TOKEN,
        method: str = "GET",
        body: Optional[Any] = None,
        action: str = "contact the statistics service",
    ) -> ApiResult:
        """Perform one request. Expected failures come back as ``ApiResult.error``."""
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        pass

    def _to_question(self, data: dict) -> Question:
        """Convert a service row to a Question model."""
        return Question(
            id=str(data["id"]),
            text=data["question_text"],
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )

    def _to_response(self, data: dict) -> ResponseOption:
        """Convert a service row to a ResponseOption model."""
        return ResponseOption(
            id=str(data["id"]),
            text=data["response_text"],
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )

    async def _fetch_rows(self, endpoint: str, token: str, what: str, convert) -> ApiResult:
        result = await self.call(endpoint, token=token, action=f"fetch {what}")
        if not result.ok:
            return result
        try:
            return ApiResult(data=[convert(row) for row in result.data])
        except (KeyError, TypeError, ValueError):
            return ApiResult(error=ApiError(f"Unexpected {what} payload from the statistics service"))

    async def fetch_questions(self, token: str) -> ApiResult:
        """Get the ordered question list."""
        return await self._fetch_rows(QUESTIONS_ENDPOINT, token, "questions", self._to_question)

    async def fetch_responses(self, token: str) -> ApiResult:
        """Get the shared set of response options."""
        return await self._fetch_rows(RESPONSES_ENDPOINT, token, "responses", self._to_response)

    async def submit(self, token: str, payload: SubmissionPayload) -> ApiResult:
        """Post a completed questionnaire."""
        return await self.call(
            SUBMISSIONS_ENDPOINT,
            token=token,
            method="POST",
            body=payload.to_json(),
            action="submit quiz",
        )

    async def fetch_detailed_stats(self, token: str) -> ApiResult:
        """Get demographic and per-question aggregates."""
        return await self.call(DETAILED_STATS_ENDPOINT, token=token, action="fetch statistics")

    async def fetch_table_stats(self, token: str) -> ApiResult:
        """Get the tabular demographic breakdown."""
        return await self.call(TABLE_STATS_ENDPOINT, token=token, action="fetch statistics table data")

    async def fetch_global_stats(self, token: str) -> ApiResult:
        """Get the global score bucket distribution."""
        return await self.call(GLOBAL_STATS_ENDPOINT, token=token, action="fetch global statistics data")

    async def fetch_custom_stats(self, token: str) -> ApiResult:
        """Get the per-group score distribution."""
        return await self.call(CUSTOM_STATS_ENDPOINT, token=token, action="fetch custom statistics data")

    @abstractmethod
    async def login(self, email: str, password: str) -> ApiResult:
        """Exchange credentials for an access token."""
        pass
