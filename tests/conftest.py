"""
Shared fixtures. The environment is set before the app is imported so the
module-level config picks up a throwaway database and no AI backends.
"""
import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="quizlit-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["OPENAI_API_KEY"] = ""
os.environ["OLLAMA_ENABLED"] = "0"
os.environ["GENERATION_RATE_LIMIT"] = "1000/minute"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from app.auth import create_access_token
from app.main import app


STUDY_TEXT = (
    "Photosynthesis converts light energy into chemical energy inside plant cells. "
    "Chlorophyll molecules absorb sunlight mostly in the blue and red wavelengths. "
    "The light reactions produce oxygen as a byproduct of splitting water molecules. "
    "The Calvin cycle uses carbon dioxide to build glucose molecules for the plant. "
    "Stomata regulate the exchange of carbon dioxide and oxygen with the atmosphere. "
    "Plant cells store excess glucose as starch for later energy needs."
)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    token = create_access_token("user-1", email="student@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_user_headers():
    token = create_access_token("user-2", email="friend@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def study_text():
    return STUDY_TEXT
