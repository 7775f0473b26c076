"""
Wiring of the agent's services, kept out of main.py so it can be tested.
"""
from config_loader import get_app_config, get_firebase_config, get_gemini_config, get_tuition_config


def setup_agent(config):
    """Build the agent and all of its services.

    Args:
        config (dict): Loaded configuration dictionary.

    Returns:
        agent.Agent: Agent with its services registered, not yet listening.
    """
    if not config:
        raise ValueError("Configuration not loaded")

    # Local imports to avoid import-time side-effects
    from internal.firebase import get_firestore_client
    from repositories import ChatRepository
    from services.tool_executor import TuitionToolExecutor
    from services.message_service import MessageService
    from gemini_client import GeminiClient
    from handlers.error_handler import ErrorHandler
    from handlers.message_handler_service import MessageHandlerService
    from agent import Agent

    firebase_config = get_firebase_config(config)
    db = get_firestore_client(firebase_config)
    chat_repository = ChatRepository(db, collection=firebase_config.get("collection", "chats"))

    tool_executor = TuitionToolExecutor(get_tuition_config(config))
    gemini_client = GeminiClient(get_gemini_config(config), tool_executor)
    error_handler = ErrorHandler(chat_repository)
    message_handler_service = MessageHandlerService(chat_repository, gemini_client, error_handler)
    message_service = MessageService(chat_repository)

    return Agent(
        shutdown_timeout=get_app_config(config).get("shutdown_timeout", 10.0),
        chat_repository=chat_repository,
        tool_executor=tool_executor,
        gemini_client=gemini_client,
        error_handler=error_handler,
        message_handler_service=message_handler_service,
        message_service=message_service,
    )
