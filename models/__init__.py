from models.message import Message, USER_ROLE, MODEL_ROLE

__all__ = ["Message", "USER_ROLE", "MODEL_ROLE"]
