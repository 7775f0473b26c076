import asyncio

import pytest

from agent import Agent
from conftest import FakeGeminiClient
from handlers.error_handler import ErrorHandler
from handlers.message_handler_service import MessageHandlerService


class DummyService:
    def __init__(self):
        self.called = False

    def action(self):
        self.called = True


class SlowHandler:
    def __init__(self):
        self.cancelled = False

    async def handle(self, message):
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            self.cancelled = True
            raise


def test_register_and_get_service():
    a = Agent()
    svc = DummyService()
    a.register_service('dummy', svc)
    got = a.get_service('dummy')
    assert got is svc
    assert hasattr(a, 'dummy')


def test_unregister_service():
    a = Agent()
    svc = DummyService()
    a.register_service('dummy', svc)
    a.unregister_service('dummy')
    assert a.get_service('dummy') is None
    assert not hasattr(a, 'dummy')


def test_list_services():
    a = Agent()
    a.register_service('a', 1)
    a.register_service('b', 2)
    d = a.list_services()
    assert d == {'a': 1, 'b': 2}


def test_start_requires_repository():
    with pytest.raises(RuntimeError):
        Agent(message_handler_service=object()).start(None)


def test_added_entry_from_listener_thread_is_answered(chat_repository):
    gemini = FakeGeminiClient(reply="Please share your student ID.")
    handler = MessageHandlerService(chat_repository, gemini, ErrorHandler(chat_repository))
    agent = Agent(chat_repository=chat_repository, message_handler_service=handler)

    async def scenario():
        agent.start(asyncio.get_running_loop())
        assert agent.is_listening
        message = chat_repository.seed_user_message("What's my balance?")
        # Firestore invokes the callback on its own thread
        await asyncio.to_thread(chat_repository.listener, message)
        await asyncio.sleep(0)
        while agent.in_flight:
            await asyncio.sleep(0.01)
        await agent.stop()
        return message

    message = asyncio.run(scenario())

    assert not agent.is_listening
    assert chat_repository.docs[message.id]["processed"] is True
    assert chat_repository.replies == [
        {"text": "Please share your student ID.", "role": "model", "relatedToMessageId": message.id}
    ]


def test_dispatch_skips_non_pending_entries(chat_repository):
    agent = Agent(chat_repository=chat_repository, message_handler_service=SlowHandler())

    async def scenario():
        processed = chat_repository.seed_user_message("old", processed=True)
        return agent.dispatch(processed)

    assert asyncio.run(scenario()) is None


def test_stop_cancels_tasks_past_timeout(chat_repository):
    slow = SlowHandler()
    agent = Agent(chat_repository=chat_repository, message_handler_service=slow, shutdown_timeout=0.05)

    async def scenario():
        agent.start(asyncio.get_running_loop())
        task = agent.dispatch(chat_repository.seed_user_message("hello"))
        await asyncio.sleep(0)
        assert agent.in_flight == 1
        await agent.stop()
        return task

    task = asyncio.run(scenario())

    assert task.cancelled()
    assert slow.cancelled
    assert agent.in_flight == 0


def test_entries_queued_during_stop_are_not_handled(chat_repository):
    gemini = FakeGeminiClient(reply="too late")
    handler = MessageHandlerService(chat_repository, gemini, ErrorHandler(chat_repository))
    agent = Agent(chat_repository=chat_repository, message_handler_service=handler)

    async def scenario():
        loop = asyncio.get_running_loop()
        agent.start(loop)
        message = chat_repository.seed_user_message("late")
        loop.call_soon(agent.dispatch, message)
        await agent.stop()
        await asyncio.sleep(0.05)
        # A watch callback arriving after shutdown is ignored too
        agent._on_added(chat_repository.seed_user_message("later"))
        await asyncio.sleep(0.05)
        return message

    message = asyncio.run(scenario())

    assert gemini.calls == []
    assert agent.in_flight == 0
    assert chat_repository.docs[message.id]["processed"] is False
    assert chat_repository.replies == []
