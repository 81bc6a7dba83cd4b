"""Generative models that turn (question, context) into an answer."""

from .api import ChatCompletionModel
from .base import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE, GenerativeModel, build_user_prompt

__all__ = [
    "ChatCompletionModel",
    "GenerativeModel",
    "SYSTEM_PROMPT",
    "USER_PROMPT_TEMPLATE",
    "build_user_prompt",
]
