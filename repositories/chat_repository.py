import asyncio
import logging
from typing import Callable, List, Optional

from firebase_admin import firestore

from models import Message, USER_ROLE, MODEL_ROLE

logger = logging.getLogger(__name__)


@firestore.transactional
def _claim_in_transaction(transaction, doc_ref) -> bool:
    snapshot = doc_ref.get(transaction=transaction)
    if not snapshot.exists:
        return False
    data = snapshot.to_dict() or {}
    if data.get("role") != USER_ROLE or data.get("processed"):
        return False
    transaction.update(doc_ref, {"processed": True})
    return True


class ChatRepository:
    """Access to the append-only `chats` collection.

    The Firestore SDK is blocking, so the coroutine methods push each call to a
    worker thread.
    """

    def __init__(self, db, collection: str = "chats"):
        self.db = db
        self.collection_name = collection
        self.collection = db.collection(collection)

    def listen_added(self, callback: Callable[[Message], None]):
        """Subscribe to newly added entries; returns the watch (call .unsubscribe())."""
        logger.info(f"Starting Firestore listener on '{self.collection_name}' collection...")

        def _on_snapshot(col_snapshot, changes, read_time):
            for change in changes:
                if change.type.name != "ADDED":
                    continue
                callback(Message.from_document(change.document.id, change.document.to_dict()))

        return self.collection.on_snapshot(_on_snapshot)

    async def claim(self, message_id: str) -> bool:
        """Set processed=true only if it is currently unset. False means someone else owns it."""
        return await asyncio.to_thread(self._claim, message_id)

    def _claim(self, message_id: str) -> bool:
        doc_ref = self.collection.document(message_id)
        return _claim_in_transaction(self.db.transaction(), doc_ref)

    async def add_reply(self, text: str, related_to_message_id: Optional[str] = None) -> str:
        """Append a model entry and return its id."""
        message = Message(id=None, text=text, role=MODEL_ROLE, related_to_message_id=related_to_message_id)
        return await asyncio.to_thread(self._add, message)

    async def add_user_message(self, text: str) -> str:
        """Append an unprocessed user entry and return its id."""
        message = Message(id=None, text=text, role=USER_ROLE, processed=False)
        return await asyncio.to_thread(self._add, message)

    def _add(self, message: Message) -> str:
        doc = message.to_document()
        doc["createdAt"] = firestore.SERVER_TIMESTAMP
        _, doc_ref = self.collection.add(doc)
        return doc_ref.id

    async def list_messages(self, limit: int = 100) -> List[Message]:
        """Entries in display order (createdAt ascending), the last `limit` of them."""
        return await asyncio.to_thread(self._list_messages, limit)

    def _list_messages(self, limit: int) -> List[Message]:
        query = (
            self.collection.order_by("createdAt", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        messages = [Message.from_document(doc.id, doc.to_dict()) for doc in query.stream()]
        messages.reverse()
        return messages
