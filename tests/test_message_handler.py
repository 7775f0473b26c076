import asyncio

from conftest import FakeGeminiClient
from handlers.error_handler import APOLOGY_TEXT, ErrorHandler
from handlers.message_handler_service import MessageHandlerService
from models import Message


def make_handler(repo, gemini_client):
    return MessageHandlerService(repo, gemini_client, ErrorHandler(repo))


def test_reply_is_linked_to_source_entry(chat_repository):
    gemini = FakeGeminiClient(reply="Your balance is 1200.")
    message = chat_repository.seed_user_message("Balance for S1?")

    reply_id = asyncio.run(make_handler(chat_repository, gemini).handle(message))

    assert gemini.calls == ["Balance for S1?"]
    assert chat_repository.docs[message.id]["processed"] is True
    assert chat_repository.replies == [
        {"text": "Your balance is 1200.", "role": "model", "relatedToMessageId": message.id}
    ]
    assert chat_repository.docs[reply_id]["text"] == "Your balance is 1200."


def test_model_and_processed_entries_are_ignored(chat_repository):
    gemini = FakeGeminiClient()
    handler = make_handler(chat_repository, gemini)
    processed = chat_repository.seed_user_message("old", processed=True)
    model_entry = Message(id="m1", text="hi", role="model")

    assert asyncio.run(handler.handle(processed)) is None
    assert asyncio.run(handler.handle(model_entry)) is None
    assert gemini.calls == []
    assert chat_repository.claims == []


def test_duplicate_delivery_is_handled_once(chat_repository):
    gemini = FakeGeminiClient(reply="Done")
    handler = make_handler(chat_repository, gemini)
    message = chat_repository.seed_user_message("Pay 100 for S1")

    async def deliver_twice():
        return await asyncio.gather(handler.handle(message), handler.handle(message))

    results = asyncio.run(deliver_twice())

    assert gemini.calls == ["Pay 100 for S1"]
    assert len(chat_repository.replies) == 1
    assert sorted(r is None for r in results) == [False, True]
    assert chat_repository.claims == [message.id, message.id]


def test_orchestration_failure_appends_apology(chat_repository):
    gemini = FakeGeminiClient(error=RuntimeError("model down"))
    message = chat_repository.seed_user_message("Balance?")

    asyncio.run(make_handler(chat_repository, gemini).handle(message))

    assert chat_repository.replies == [
        {"text": APOLOGY_TEXT, "role": "model", "relatedToMessageId": message.id}
    ]
    assert "model down" not in APOLOGY_TEXT


def test_apology_write_failure_is_contained(chat_repository, caplog):
    gemini = FakeGeminiClient(error=RuntimeError("model down"))
    chat_repository.fail_add_reply = True
    message = chat_repository.seed_user_message("Balance?")

    result = asyncio.run(make_handler(chat_repository, gemini).handle(message))

    assert result is None
    assert chat_repository.replies == []
    assert "Could not write apology" in caplog.text
