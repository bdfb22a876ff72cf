"""
Shared test fixtures for AssignAI.
The language model is replaced by a scripted fake that counts calls.
Zero network calls; test PDFs are generated in memory with PyMuPDF.
"""
import json

import fitz
import pytest

from assignai.app import create_app
from assignai.services.assignment_parser import AssignmentParser
from assignai.services.assignment_store import AssignmentStore
from assignai.services.cache import ResponseCache
from assignai.services.mediation_service import MediationService


class FakeLLM:
    """Stands in for LLMClient.

    Replies are consumed in order; an Exception instance in the list is
    raised instead of returned. Once the list is empty, `default` is returned.
    """

    def __init__(self, replies=None, default="Fake model reply"):
        self.replies = list(replies or [])
        self.default = default
        self.calls = []

    def complete(self, messages, max_tokens, timeout, temperature=0.7, model=None, **options):
        self.calls.append({
            "messages": messages,
            "max_tokens": max_tokens,
            "timeout": timeout,
            "temperature": temperature,
            "options": options,
        })
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def call_count(self):
        return len(self.calls)


def make_pdf(pages):
    """Build PDF bytes. Each page is a list of strings or (x, y, text) tuples."""
    doc = fitz.open()
    for items in pages:
        page = doc.new_page()
        y = 72
        for item in items:
            if isinstance(item, str):
                page.insert_text((72, y), item, fontsize=11)
                y += 20
            else:
                x, item_y, text = item
                page.insert_text((x, item_y), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def assignment_reply(**overrides):
    """A well-formed model reply for a two-question assignment."""
    reply = {
        "title": "Arithmetic Basics",
        "globalInstructions": "Show all work.",
        "tables": [],
        "questions": [
            {"number": 1, "text": "What is 2+2?", "dependsOn": [], "requiredForNext": True, "tableData": []},
            {"number": 2, "text": "Explain your answer.", "dependsOn": [1], "requiredForNext": False, "tableData": []},
        ],
    }
    reply.update(overrides)
    return json.dumps(reply)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def cache():
    return ResponseCache(ttl=60)


@pytest.fixture
def mediation(fake_llm, cache):
    return MediationService(llm=fake_llm, cache=cache)


@pytest.fixture
def parser_llm():
    return FakeLLM(default=assignment_reply())


@pytest.fixture
def parser(parser_llm):
    return AssignmentParser(llm=parser_llm, cache=ResponseCache(ttl=60))


@pytest.fixture
def store():
    return AssignmentStore()


@pytest.fixture
def app(tmp_path, store, parser, mediation):
    """Flask app built by the factory with fakes and a temporary upload folder."""
    app = create_app(store=store, parser=parser, mediation=mediation,
                     upload_folder=str(tmp_path / "uploads"))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
