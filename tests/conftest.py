import json
from typing import Any, Iterator, List, Optional, Tuple

from unittest.mock import MagicMock, patch
import pytest

from mentorhub.config import Settings
from mentorhub.infrastructure.storage import InMemoryDataStore


# Configure anyio to only use asyncio backend
@pytest.fixture
def anyio_backend() -> str:
    """Force tests to use asyncio backend only."""
    return "asyncio"


@pytest.fixture(autouse=True, scope="session")
def mock_logger() -> Iterator[MagicMock]:
    with patch("mentorhub.logging._logger", MagicMock()) as mock_logger:
        mock_logger.log.return_value = None
        yield mock_logger


def question_json(
    skill_area: str = "arrays",
    difficulty: Any = 5,
    correct: str = "O(1)",
    text: Optional[str] = None,
) -> str:
    return json.dumps(
        {
            "question": text or f"{skill_area} question at level {difficulty}",
            "options": [correct, "O(n)", "O(log n)", "O(n^2)"],
            "correctAnswer": correct,
            "explanation": f"{correct} is right",
            "skillArea": skill_area,
            "difficulty": difficulty,
        }
    )


class ScriptedProvider:
    """Text generation stub replaying canned completions in order.

    Once the script runs out the last completion is repeated.
    """

    def __init__(self, *completions: str):
        self.completions: List[str] = list(completions)
        self.calls: List[Tuple[str, str]] = []
        self.closed = False

    async def complete(self, system: str, prompt: str) -> str:
        self.calls.append((system, prompt))
        if len(self.calls) <= len(self.completions):
            return self.completions[len(self.calls) - 1]
        return self.completions[-1]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        openai_api_key="test-key",
        host="127.0.0.1",
        port=8000,
        log_level="INFO",
        log_file_path=None,
        error_log_file_path=None,
    )


@pytest.fixture
def store() -> InMemoryDataStore:
    return InMemoryDataStore()


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider(question_json())
