# conftest.py
import os
from types import SimpleNamespace

os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['RATE_LIMIT_PER_MINUTE'] = '1000'
for _key in ('GROQ_API_KEY', 'GEMINI_API_KEY', 'GOOGLE_TRANSLATE_API_KEY', 'TOGETHER_API_KEY',
             'GIT_COMMIT_SHA', 'BUILD_TIME', 'FRONTEND_ORIGIN'):
    os.environ.pop(_key, None)

import pytest

import empathy
import groq_service
import vision
from app import app as flask_app
from models import db
from rate_limit import limiter


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies) or ["OK"]
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))],
            usage=SimpleNamespace(prompt_tokens=5, completion_tokens=7, total_tokens=12),
        )


class FakeGroq:
    def __init__(self, replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


@pytest.fixture
def fake_groq(monkeypatch):
    """Install a fake Groq client that answers with the given replies in order."""
    def install(*replies):
        client = FakeGroq(replies)
        monkeypatch.setenv('GROQ_API_KEY', 'test-key')
        monkeypatch.setattr(groq_service, 'get_groq_client', lambda: client)
        return client
    return install


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.ok = 200 <= status_code < 300

    def json(self):
        return self._payload

    def raise_for_status(self):
        if not self.ok:
            import requests
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def app(monkeypatch):
    flask_app.config['TESTING'] = True
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
    limiter.reset()
    monkeypatch.setattr(vision, 'memory', vision.VisionMemory())
    monkeypatch.setattr(empathy, 'engine', empathy.EmpathyEngine())
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()
