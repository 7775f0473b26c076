import asyncio
from types import SimpleNamespace

import pytest

from models import Message, USER_ROLE, MODEL_ROLE


class FakeChatRepository:
    """In-memory stand-in for the Firestore `chats` collection."""

    def __init__(self):
        self.docs = {}
        self.replies = []
        self.claims = []
        self.fail_add_reply = False
        self._next_id = 0
        self.listener = None

    def _new_id(self):
        self._next_id += 1
        return f"doc{self._next_id}"

    def seed_user_message(self, text, processed=False):
        doc_id = self._new_id()
        self.docs[doc_id] = {"text": text, "role": USER_ROLE, "processed": processed}
        return Message.from_document(doc_id, self.docs[doc_id])

    def listen_added(self, callback):
        self.listener = callback
        return SimpleNamespace(unsubscribe=lambda: setattr(self, "listener", None))

    async def claim(self, message_id):
        self.claims.append(message_id)
        await asyncio.sleep(0)
        doc = self.docs.get(message_id)
        if doc is None or doc.get("role") != USER_ROLE or doc.get("processed"):
            return False
        doc["processed"] = True
        return True

    async def add_reply(self, text, related_to_message_id=None):
        if self.fail_add_reply:
            raise RuntimeError("firestore unavailable")
        doc_id = self._new_id()
        self.docs[doc_id] = {"text": text, "role": MODEL_ROLE, "relatedToMessageId": related_to_message_id}
        self.replies.append(self.docs[doc_id])
        return doc_id

    async def add_user_message(self, text):
        return self.seed_user_message(text).id

    async def list_messages(self, limit=100):
        messages = [Message.from_document(doc_id, data) for doc_id, data in self.docs.items()]
        return messages[-limit:]


class FakeGeminiClient:
    def __init__(self, reply="Hello!", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate_reply(self, user_text):
        self.calls.append(user_text)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.reply


def text_part(text):
    return SimpleNamespace(text=text, function_call=None)


def call_part(name, **args):
    return SimpleNamespace(text="", function_call=SimpleNamespace(name=name, args=args))


def model_response(*parts):
    content = SimpleNamespace(role="model", parts=list(parts))
    return SimpleNamespace(candidates=[SimpleNamespace(content=content, finish_reason="STOP")])


class FakeModel:
    """Returns queued responses from generate_content_async and records the contents sent."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    async def generate_content_async(self, contents):
        self.requests.append(contents)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingToolExecutor:
    def __init__(self, result=None):
        self.result = result if result is not None else {"student_id": "S1", "balance": 1200}
        self.calls = []

    async def execute(self, name, args):
        self.calls.append((name, args))
        return self.result

    async def aclose(self):
        pass


@pytest.fixture
def chat_repository():
    return FakeChatRepository()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "PORT", "HOST", "API_URL", "TUITION_TIMEOUT", "GEMINI_API_KEY", "GEMINI_MODEL",
        "FIREBASE_SERVICE_ACCOUNT", "FIREBASE_COLLECTION", "DEBUG", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
