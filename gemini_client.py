"""
Google Gemini client that answers tuition questions using function calling
"""

from __future__ import annotations

import logging
from typing import Optional, Dict, Any, List

import google.generativeai as genai
from google.generativeai import protos
from google.generativeai.types import HarmCategory, HarmBlockThreshold

from services.tool_catalog import TUITION_TOOL
from services.tool_executor import TuitionToolExecutor

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a helpful tuition assistant for a Tuition Centre.\n"
    "You can help check outstanding fees and process payments.\n"
    "ALWAYS ask for the 'student_id' if it is not provided before using a tool.\n"
    "Use the provided tools 'check_tuition' and 'pay_tuition' when necessary."
)


class EmptyModelResponseError(RuntimeError):
    """The model returned no usable candidate content or text"""


class GeminiClient:
    """Runs one user message through Gemini, executing any requested tools"""

    def __init__(
        self,
        config: Dict[str, Any],
        tool_executor: TuitionToolExecutor,
        model=None,
        summary_model=None,
    ):
        """
        Initialize Gemini client

        Args:
            config: Gemini configuration dictionary
            tool_executor: Executor for check_tuition / pay_tuition calls
            model: Pre-built model offered the tools (built from config if None)
            summary_model: Pre-built model for the follow-up call after tools ran
        """
        self.config = config
        self.api_key = config.get("api_key")
        self.model_name = config.get("model_name", "gemini-2.5-flash")
        self.temperature = config.get("temperature", 0.7)
        self.max_tokens = config.get("max_tokens", 1000)
        self.top_p = config.get("top_p", 0.8)
        self.top_k = config.get("top_k", 40)
        self.tool_executor = tool_executor

        if model is None or summary_model is None:
            genai.configure(api_key=self.api_key)
        self.model = model or self._initialize_model(tools=[TUITION_TOOL])
        # The follow-up call only summarises tool output, so it gets no tools
        self.summary_model = summary_model or self._initialize_model(tools=None)

    def _initialize_model(self, tools: Optional[List[protos.Tool]]):
        """Initialize a Gemini model with safety settings and the tuition persona"""

        generation_config = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_output_tokens": self.max_tokens,
        }

        safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        }

        try:
            model = genai.GenerativeModel(
                model_name=self.model_name,
                generation_config=generation_config,
                safety_settings=safety_settings,
                system_instruction=SYSTEM_INSTRUCTION,
                tools=tools,
            )
            logger.info(
                f"Gemini model '{self.model_name}' initialized "
                f"({'with' if tools else 'without'} tools)"
            )
            return model
        except Exception as e:
            logger.error(f"Failed to initialize Gemini model: {str(e)}")
            raise

    async def generate_reply(self, user_text: str) -> str:
        """
        Produce the assistant's reply to a single user message.

        The first call offers the tuition tools. If the model asks for any,
        they are executed in order and a second call turns their results into
        prose.

        Args:
            user_text: The user's message

        Returns:
            Final reply text

        Raises:
            EmptyModelResponseError: If the model returns no content or no text
        """
        contents: List[Any] = [{"role": "user", "parts": [{"text": user_text}]}]

        response = await self.model.generate_content_async(contents)
        first_content = self._first_content(response)

        function_calls = [
            part.function_call
            for part in first_content.parts
            if getattr(part, "function_call", None)
        ]

        if not function_calls:
            logger.debug("No tool calls requested; using first response text")
            return self._text_of(first_content)

        tool_parts = []
        for call in function_calls:
            result = await self.tool_executor.execute(call.name, dict(call.args))
            tool_parts.append(
                protos.Part(
                    function_response=protos.FunctionResponse(
                        name=call.name, response={"result": result}
                    )
                )
            )

        logger.info(f"Executed {len(tool_parts)} tool call(s); requesting summary")
        follow_up = await self.summary_model.generate_content_async(
            contents
            + [
                first_content,
                {"role": "function", "parts": tool_parts},
            ]
        )
        return self._text_of(self._first_content(follow_up))

    @staticmethod
    def _first_content(response):
        candidates = getattr(response, "candidates", None)
        if not candidates:
            raise EmptyModelResponseError("Model returned no candidates")
        content = getattr(candidates[0], "content", None)
        if content is None or not getattr(content, "parts", None):
            finish_reason = getattr(candidates[0], "finish_reason", None)
            raise EmptyModelResponseError(f"Model returned no content parts (finish_reason={finish_reason})")
        return content

    @staticmethod
    def _text_of(content) -> str:
        text = "".join(getattr(part, "text", "") or "" for part in content.parts).strip()
        if not text:
            raise EmptyModelResponseError("Model returned no text")
        return text

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get current model information

        Returns:
            Dictionary with model configuration
        """
        return {
            "model_name": self.model_name,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "top_k": self.top_k,
        }
