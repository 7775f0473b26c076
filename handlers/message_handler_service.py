import logging
from typing import Optional

from models import Message

logger = logging.getLogger(__name__)


class MessageHandlerService:
    """Turns one unprocessed user entry into exactly one model entry"""

    def __init__(self, chat_repository, gemini_client, error_handler):
        self.chat_repository = chat_repository
        self.gemini_client = gemini_client
        self.error_handler = error_handler

    async def handle(self, message: Message) -> Optional[str]:
        """
        Process a newly added log entry.

        Returns:
            Id of the appended reply (or apology), None if the entry was skipped
        """
        if not message.is_pending():
            return None

        # Claim before any model call; losing the claim means another delivery owns it
        if not await self.chat_repository.claim(message.id):
            logger.info(f"[Skip] doc {message.id} already claimed")
            return None

        logger.info(f'[New Message] processing doc {message.id}: "{message.text}"')

        try:
            reply_text = await self.gemini_client.generate_reply(message.text)
            reply_id = await self.chat_repository.add_reply(
                reply_text, related_to_message_id=message.id
            )
        except Exception as e:
            return await self.error_handler.handle(message, e)

        logger.info(f"[Reply Sent] {reply_id} for doc {message.id}")
        return reply_id
