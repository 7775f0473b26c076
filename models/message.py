from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

USER_ROLE = "user"
MODEL_ROLE = "model"


@dataclass
class Message:
    """One entry in the shared chat log"""
    id: Optional[str]
    text: str
    role: str  # 'user' or 'model'
    created_at: Optional[datetime] = None
    processed: bool = False  # user entries only
    related_to_message_id: Optional[str] = None  # model entries only

    def is_pending(self) -> bool:
        return self.role == USER_ROLE and not self.processed

    @classmethod
    def from_document(cls, doc_id: str, data: Optional[Dict[str, Any]]) -> "Message":
        data = data or {}
        return cls(
            id=doc_id,
            text=data.get("text", ""),
            role=data.get("role", ""),
            created_at=data.get("createdAt"),
            processed=bool(data.get("processed", False)),
            related_to_message_id=data.get("relatedToMessageId"),
        )

    def to_document(self) -> Dict[str, Any]:
        """Firestore field mapping; createdAt is left to the caller (server timestamp)."""
        doc: Dict[str, Any] = {"text": self.text, "role": self.role}
        if self.role == USER_ROLE:
            doc["processed"] = self.processed
        if self.related_to_message_id:
            doc["relatedToMessageId"] = self.related_to_message_id
        return doc
