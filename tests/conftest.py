"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
The model endpoint is replaced by FakeModelClient, which replays queued
responses in call order.
"""
import json
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from deutsch_meister.generation import ContentService  # noqa: E402
from deutsch_meister.storage import LibraryRepository, LocalStore  # noqa: E402
from deutsch_meister.study import ExerciseOrchestrator  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (orchestrator flows)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Fake Model Endpoint
# ========================================


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModelClient:
    """
    Stand-in for ``genai.GenerativeModel``.

    Each queued item is one of:
    - str: returned as the response text
    - list/dict: JSON-encoded, then returned
    - Exception: raised from the call
    - async callable ``(prompt) -> item``: awaited first (for gating/slow calls)
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    @property
    def prompts(self):
        return [prompt for prompt, _ in self.calls]

    async def generate_content_async(self, prompt, generation_config=None):
        self.calls.append((prompt, generation_config or {}))
        if not self.responses:
            raise RuntimeError(f"Unexpected model call: {prompt[:60]}")

        item = self.responses.pop(0)
        if callable(item):
            item = await item(prompt)
        if isinstance(item, BaseException):
            raise item
        if not isinstance(item, str):
            item = json.dumps(item, ensure_ascii=False)
        return FakeResponse(item)


# ========================================
# Wiring
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the user's data directory."""
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        data_dir=tmp_path / "store",
        export_filename=str(tmp_path / "export.txt"),
    )


@pytest.fixture
def fake_client():
    return FakeModelClient()


@pytest.fixture
def service(fake_client, settings):
    return ContentService(client=fake_client, settings=settings)


@pytest.fixture
def store(settings):
    return LocalStore(settings.data_dir)


@pytest.fixture
def repository(store):
    return LibraryRepository(store)


@pytest.fixture
def orchestrator(service, repository, settings):
    import random

    return ExerciseOrchestrator(service, repository, settings=settings, rng=random.Random(7))


# ========================================
# Sample Content
# ========================================


@pytest.fixture
def sample_story():
    """A three-sentence A2 story about Berlin."""
    return (
        "Anna wohnt seit zwei Jahren in Berlin. "
        "Jeden Morgen fährt sie mit der U-Bahn zur Arbeit. "
        "Am Abend trifft sie ihre Freunde im Park."
    )


@pytest.fixture
def sample_translations():
    return [
        {"german": "Anna wohnt seit zwei Jahren in Berlin.", "turkish": "Anna iki yıldır Berlin'de yaşıyor."},
        {"german": "Jeden Morgen fährt sie mit der U-Bahn zur Arbeit.", "turkish": "Her sabah metroyla işe gidiyor."},
        {"german": "Am Abend trifft sie ihre Freunde im Park.", "turkish": "Akşam arkadaşlarıyla parkta buluşuyor."},
    ]


@pytest.fixture
def sample_quiz():
    """Five valid questions in the model's JSON shape."""
    return [
        {
            "question": "Wo wohnt Anna?",
            "options": ["Berlin", "Hamburg", "München", "Köln"],
            "correctAnswer": "Berlin",
        },
        {
            "question": "Seit wann wohnt Anna dort?",
            "options": ["Seit einem Jahr", "Seit zwei Jahren", "Seit drei Jahren", "Seit gestern"],
            "correctAnswer": "Seit zwei Jahren",
        },
        {
            "question": "Wie fährt Anna zur Arbeit?",
            "options": ["Mit dem Bus", "Mit dem Fahrrad", "Mit der U-Bahn", "Zu Fuß"],
            "correctAnswer": "Mit der U-Bahn",
        },
        {
            "question": "Wann trifft sie ihre Freunde?",
            "options": ["Am Morgen", "Am Mittag", "Am Abend", "In der Nacht"],
            "correctAnswer": "Am Abend",
        },
        {
            "question": "Wo trifft sie ihre Freunde?",
            "options": ["Im Café", "Im Park", "Im Kino", "Zu Hause"],
            "correctAnswer": "Im Park",
        },
    ]


@pytest.fixture
def sample_cloze():
    return {
        "clozeText": "Anna [___] in Berlin. Sie fährt mit der [___] zur Arbeit.",
        "answers": ["wohnt", "U-Bahn"],
    }
