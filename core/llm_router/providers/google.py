"""Google (Gemini) LLM provider."""

from __future__ import annotations

from collections.abc import AsyncIterator

import structlog
from google import genai
from google.genai import types

from core.llm_router.providers.base import LLMProvider, LLMResponse
from shared.errors import ConfigError
from shared.schemas.tools import ToolCall

logger = structlog.get_logger()


class GoogleProvider(LLMProvider):
    """Provider for Google Gemini models, using the SDK's async client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ):
        if not api_key:
            raise ConfigError("GOOGLE_API_KEY is not set. Please configure it in a .env file.")
        self.client = genai.Client(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @staticmethod
    def _sanitize_name(name: str) -> str:
        """Google function names must be alphanumeric + underscore. Replace dots."""
        return name.replace(".", "__")

    def _clean_schema(self, schema: dict) -> dict:
        """Recursively cleans JSON schema for Gemini compatibility."""
        if not isinstance(schema, dict):
            return schema

        new_schema = schema.copy()
        new_schema.pop("title", None)

        if "properties" in new_schema and "type" not in new_schema:
            new_schema["type"] = "object"

        if "properties" in new_schema:
            new_schema["properties"] = {
                k: self._clean_schema(v) for k, v in new_schema["properties"].items()
            }

        if "items" in new_schema:
            new_schema["items"] = self._clean_schema(new_schema["items"])

        return new_schema

    def _convert_tools(
        self,
        tools: list[dict] | None,
    ) -> tuple[list[types.Tool] | None, dict[str, str]]:
        name_map: dict[str, str] = {}
        if not tools:
            return None, name_map

        declarations = []
        for tool in tools:
            func = tool.get("function", tool)
            original_name = func["name"]
            safe_name = self._sanitize_name(original_name)
            name_map[safe_name] = original_name

            params = func.get("parameters")
            if params is None:
                params = {"type": "object", "properties": {}}

            declarations.append(
                types.FunctionDeclaration(
                    name=safe_name,
                    description=func.get("description", ""),
                    parameters_json_schema=self._clean_schema(params),
                )
            )
        return [types.Tool(function_declarations=declarations)], name_map

    def _convert_messages(
        self, messages: list[dict]
    ) -> tuple[str | None, list[types.Content]]:
        """Convert messages to Google format.

        Sanitizes function names in tool_call/tool_result messages to match
        the names registered with Google (dots replaced with __).
        """
        system_parts: list[str] = []
        contents = []
        for msg in messages:
            if msg["role"] == "system":
                system_parts.append(msg["content"])
            elif msg["role"] == "tool_call":
                contents.append(
                    types.Content(
                        role="model",
                        parts=[
                            types.Part(
                                function_call=types.FunctionCall(
                                    name=self._sanitize_name(msg.get("name", "")),
                                    args=msg.get("arguments") or {},
                                )
                            )
                        ],
                    )
                )
            elif msg["role"] == "tool_result":
                contents.append(
                    types.Content(
                        role="user",
                        parts=[
                            types.Part(
                                function_response=types.FunctionResponse(
                                    name=self._sanitize_name(msg.get("name", "")),
                                    response={"result": msg.get("content")},
                                )
                            )
                        ],
                    )
                )
            elif msg["role"] == "assistant":
                contents.append(
                    types.Content(role="model", parts=[types.Part(text=msg["content"])])
                )
            else:
                contents.append(
                    types.Content(role="user", parts=[types.Part(text=msg["content"])])
                )
        system = "\n\n".join(system_parts) if system_parts else None
        return system, contents

    def _build_config(
        self, system: str | None, google_tools: list[types.Tool] | None
    ) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig(
            max_output_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if system:
            config.system_instruction = system
        if google_tools:
            config.tools = google_tools
        return config

    async def chat(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
    ) -> LLMResponse:
        """Send a chat completion to Google Gemini."""
        system, contents = self._convert_messages(messages)
        google_tools, name_map = self._convert_tools(tools)

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=self._build_config(system, google_tools),
        )
        return self._parse_response(response, name_map)

    async def chat_stream(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
    ) -> AsyncIterator[str]:
        """Stream a Gemini completion, yielding text fragments."""
        system, contents = self._convert_messages(messages)
        google_tools, _ = self._convert_tools(tools)

        stream = await self.client.aio.models.generate_content_stream(
            model=self.model,
            contents=contents,
            config=self._build_config(system, google_tools),
        )
        async for chunk in stream:
            if chunk.text:
                yield chunk.text

    def _parse_response(self, response, name_map: dict[str, str]) -> LLMResponse:
        """Parse a Gemini response into text and tool calls."""
        content = None
        tool_calls = []

        finish_reason = None
        if response.candidates:
            candidate = response.candidates[0]
            finish_reason = getattr(candidate, "finish_reason", None)
            parts = (
                getattr(candidate.content, "parts", None) if candidate.content else None
            )
            for part in parts or []:
                if part.text and not getattr(part, "thought", False):
                    content = (content or "") + part.text
                if part.function_call:
                    raw_name = part.function_call.name
                    tool_calls.append(
                        ToolCall(
                            tool_name=name_map.get(raw_name, raw_name),
                            arguments=(
                                dict(part.function_call.args)
                                if part.function_call.args
                                else {}
                            ),
                        )
                    )

        fr_str = str(finish_reason) if finish_reason else ""
        if content is None and not tool_calls:
            logger.warning(
                "gemini_empty_response",
                has_candidates=bool(response.candidates),
                finish_reason=fr_str,
                prompt_feedback=str(getattr(response, "prompt_feedback", None)),
            )

        input_tokens = 0
        output_tokens = 0
        if response.usage_metadata:
            input_tokens = response.usage_metadata.prompt_token_count or 0
            output_tokens = response.usage_metadata.candidates_token_count or 0

        return LLMResponse(
            content=content,
            tool_calls=tool_calls,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=self.model,
            stop_reason="tool_use" if tool_calls else "end_turn",
        )
