import logging
from typing import Optional

from models import Message

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "I'm sorry, I encountered an error processing your request."


class ErrorHandler:
    def __init__(self, chat_repository):
        self.chat_repository = chat_repository

    async def handle(self, message: Message, error: BaseException) -> Optional[str]:
        """Log the failure and append the generic apology linked to the source entry."""
        logger.error(
            f"Error generating AI response for doc {message.id}: {error}",
            exc_info=(type(error), error, error.__traceback__),
        )
        try:
            return await self.chat_repository.add_reply(
                APOLOGY_TEXT, related_to_message_id=message.id
            )
        except Exception:
            logger.exception(f"Could not write apology for doc {message.id}")
            return None
