from typing import List

from models import Message
from models.api import MAX_MESSAGE_LENGTH


class MessageService:
    def __init__(self, chat_repository):
        self.chat_repository = chat_repository

    async def post_user_message(self, text: str) -> str:
        cleaned_text = text.strip()
        if not cleaned_text:
            raise ValueError("Message text is empty")
        if len(cleaned_text) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message is longer than {MAX_MESSAGE_LENGTH} characters")
        return await self.chat_repository.add_user_message(cleaned_text)

    async def get_history(self, limit: int = 100) -> List[Message]:
        """Entries oldest first, as the chat page renders them"""
        return await self.chat_repository.list_messages(limit=limit)
