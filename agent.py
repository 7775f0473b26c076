"""
Tuition agent: listens to the chat log and dispatches new entries
"""
import asyncio
import logging
from typing import Dict, Any, Optional, Set

from models import Message

logger = logging.getLogger(__name__)


class Agent:
    """Service container that owns the chat log subscription.

    Services are held in a registry so routes and handlers can be looked up by
    name. Each newly added entry is handled in its own asyncio task; the
    Firestore callback thread only hands entries over to the event loop.
    """
    def __init__(self, services: Optional[Dict[str, Any]] = None, shutdown_timeout: float = 10.0, **kwargs):
        self._services: Dict[str, Any] = {}
        if services:
            if not isinstance(services, dict):
                raise TypeError("services must be a dict[str, Any]")
            self._services.update(services)
        self._services.update(kwargs)
        for name, svc in self._services.items():
            setattr(self, name, svc)

        self.shutdown_timeout = shutdown_timeout
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._watch = None
        self._tasks: Set[asyncio.Task] = set()
        self._stopping = False

    # --- Listener lifecycle --------------------------------------------------------
    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """Subscribe to added entries; handling runs on `loop`."""
        repo = self.get_service("chat_repository")
        if not repo:
            raise RuntimeError("chat_repository is required to start the listener")
        if not self.get_service("message_handler_service"):
            raise RuntimeError("message_handler_service is required to start the listener")

        self._loop = loop
        self._watch = repo.listen_added(self._on_added)
        logger.info("Agent listener started")

    @property
    def is_listening(self) -> bool:
        return self._watch is not None

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def _on_added(self, message: Message) -> None:
        # Called on the Firestore watch thread
        if self._stopping:
            return
        if self._loop is None or self._loop.is_closed():
            logger.warning(f"Dropping doc {message.id}: event loop is not running")
            return
        self._loop.call_soon_threadsafe(self.dispatch, message)

    def dispatch(self, message: Message) -> Optional[asyncio.Task]:
        """Spawn a handling task for one entry. Must run on the event loop."""
        if self._stopping:
            logger.info(f"Not dispatching doc {message.id}: agent is stopping")
            return None
        if not message.is_pending():
            return None
        handler = self.get_service("message_handler_service")
        task = asyncio.get_running_loop().create_task(handler.handle(message), name=f"chat-{message.id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Task {task.get_name()} was cancelled")
        elif task.exception() is not None:
            logger.error(f"Task {task.get_name()} failed", exc_info=task.exception())

    async def stop(self) -> None:
        """Unsubscribe, let in-flight entries finish, cancel whatever is left."""
        # Entries already queued by the watch thread are refused from here on
        self._stopping = True
        if self._watch is not None:
            self._watch.unsubscribe()
            self._watch = None
            logger.info("Agent listener stopped")

        pending = set(self._tasks)
        if pending:
            logger.info(f"Waiting up to {self.shutdown_timeout}s for {len(pending)} in-flight message(s)")
            _, still_running = await asyncio.wait(pending, timeout=self.shutdown_timeout)
            for task in still_running:
                task.cancel()
            if still_running:
                await asyncio.gather(*still_running, return_exceptions=True)

        tool_executor = self.get_service("tool_executor")
        if tool_executor is not None:
            await tool_executor.aclose()

    # --- Dynamic service registry API -------------------------------------------------
    def register_service(self, name: str, service: Any) -> None:
        """Register a service under a string name.

        Also exposes the service as an attribute on the Agent instance for
        convenience (e.g., agent.message_service).
        """
        if not name or not isinstance(name, str):
            raise ValueError("service name must be a non-empty string")
        self._services[name] = service
        setattr(self, name, service)

    def get_service(self, name: str, default: Any = None) -> Any:
        """Retrieve a registered service by name."""
        return self._services.get(name, default)

    def unregister_service(self, name: str) -> None:
        """Remove a service from the registry and delete attribute mirror."""
        self._services.pop(name, None)
        if name in self.__dict__:
            delattr(self, name)

    def list_services(self) -> Dict[str, Any]:
        """Return a shallow copy of registered services."""
        return dict(self._services)
