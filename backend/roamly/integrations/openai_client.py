"""
Model gateway client.

Calls an OpenAI-compatible chat completions endpoint with a single forced
function tool so the reply has to match a declared JSON schema. The gateway
only guarantees "well-formed or explicit failure"; geographic and business
checks belong to the planning graph.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from roamly.config import Settings, get_settings
from roamly.graph.prompts import DESTINATION_DETAILS_TOOL, ITINERARY_TOOL, STAYS_TOOL
from roamly.integrations.errors import (
    CREDITS_EXHAUSTED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    IntegrationError,
    PlannerAPIError,
)
from roamly.models.entities import DayPlan

logger = logging.getLogger(__name__)

ITINERARY_FAILED = "Failed to generate itinerary. Please try again."
ITINERARY_INVALID = "AI did not return a valid itinerary. Please try again."
STAYS_FAILED = "Failed to generate stay recommendations. Please try again."
STAYS_INVALID = "AI did not return valid stay recommendations. Please try again."
DETAILS_FAILED = "Failed to get destination details."
DETAILS_INVALID = "AI did not return valid destination details."


def _is_quota_error(error: openai.APIStatusError) -> bool:
    code = getattr(error, "code", None)
    if code in ("insufficient_quota", "billing_hard_limit_reached"):
        return True
    body = error.body if isinstance(error.body, dict) else {}
    nested = body.get("error") if isinstance(body.get("error"), dict) else body
    return nested.get("code") in ("insufficient_quota", "billing_hard_limit_reached")


def _response_text(error: openai.APIStatusError) -> str:
    response = getattr(error, "response", None)
    return response.text if response is not None else str(error.body)


class ModelGateway:
    """Schema-constrained generation over a chat completions client."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini", details_model: Optional[str] = None):
        self.client = client
        self.model = model
        self.details_model = details_model or model

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ModelGateway":
        settings = settings or get_settings()
        if not settings.model_gateway_api_key:
            raise IntegrationError("MODEL_GATEWAY_API_KEY is not configured")
        client = AsyncOpenAI(
            api_key=settings.model_gateway_api_key,
            base_url=settings.model_gateway_base_url,
            timeout=settings.model_timeout_seconds,
            max_retries=0,  # retries are the caller's decision
        )
        return cls(client, model=settings.itinerary_model, details_model=settings.details_model)

    async def call_tool(
        self,
        system_prompt: str,
        user_prompt: str,
        tool: Dict[str, Any],
        *,
        failure_message: str,
        invalid_message: str,
        model: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run one forced tool call and return its parsed arguments."""
        tool_name = tool["function"]["name"]
        try:
            completion = await self.client.chat.completions.create(
                model=model or self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                tools=[tool],
                tool_choice={"type": "function", "function": {"name": tool_name}},
            )
        except openai.RateLimitError as e:
            if _is_quota_error(e):
                logger.warning("AI gateway quota exhausted during %s", tool_name)
                raise PlannerAPIError(402, CREDITS_EXHAUSTED_MESSAGE) from e
            logger.warning("AI gateway rate limited during %s", tool_name)
            raise PlannerAPIError(429, RATE_LIMITED_MESSAGE) from e
        except openai.APIStatusError as e:
            if e.status_code == 402:
                logger.warning("AI gateway credits exhausted during %s", tool_name)
                raise PlannerAPIError(402, CREDITS_EXHAUSTED_MESSAGE) from e
            logger.error("AI gateway error: %s %s", e.status_code, _response_text(e))
            raise PlannerAPIError(500, failure_message) from e
        except openai.APIError as e:
            # connection failures and timeouts land here
            logger.error("AI gateway request failed during %s: %s", tool_name, e)
            raise PlannerAPIError(500, failure_message) from e

        return self._tool_arguments(completion, tool_name, invalid_message)

    @staticmethod
    def _tool_arguments(completion: Any, tool_name: str, invalid_message: str) -> Dict[str, Any]:
        try:
            tool_call = completion.choices[0].message.tool_calls[0]
            arguments = tool_call.function.arguments
        except (AttributeError, IndexError, TypeError):
            arguments = None

        if not arguments:
            logger.error("No tool call in %s response: %s", tool_name, _dump(completion))
            raise PlannerAPIError(500, invalid_message)

        try:
            parsed = json.loads(arguments)
        except (TypeError, ValueError) as e:
            logger.error("Unparseable %s arguments: %s (%s)", tool_name, arguments[:500], e)
            raise PlannerAPIError(500, invalid_message) from e

        if not isinstance(parsed, dict):
            logger.error("%s arguments are not an object: %s", tool_name, type(parsed).__name__)
            raise PlannerAPIError(500, invalid_message)
        return parsed

    async def generate_itinerary(self, system_prompt: str, user_prompt: str) -> List[Dict[str, Any]]:
        """Return the model's ``itinerary`` array, schema-checked but otherwise untouched."""
        parsed = await self.call_tool(
            system_prompt,
            user_prompt,
            ITINERARY_TOOL,
            failure_message=ITINERARY_FAILED,
            invalid_message=ITINERARY_INVALID,
        )
        itinerary = parsed.get("itinerary")
        if not isinstance(itinerary, list):
            logger.error("Itinerary payload is %s, expected array", type(itinerary).__name__)
            raise PlannerAPIError(500, ITINERARY_INVALID)

        for day in itinerary:
            try:
                DayPlan.model_validate(day)
            except ValidationError as e:
                logger.error("Itinerary day failed schema validation: %s", e)
                raise PlannerAPIError(500, ITINERARY_INVALID) from e
        return itinerary

    async def recommend_stays(self, system_prompt: str, user_prompt: str) -> List[Dict[str, Any]]:
        parsed = await self.call_tool(
            system_prompt,
            user_prompt,
            STAYS_TOOL,
            failure_message=STAYS_FAILED,
            invalid_message=STAYS_INVALID,
        )
        stays = parsed.get("stays")
        if not isinstance(stays, list):
            raise PlannerAPIError(500, STAYS_INVALID)
        return [s for s in stays if isinstance(s, dict)]

    async def destination_details(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        return await self.call_tool(
            system_prompt,
            user_prompt,
            DESTINATION_DETAILS_TOOL,
            failure_message=DETAILS_FAILED,
            invalid_message=DETAILS_INVALID,
            model=self.details_model,
        )


def _dump(completion: Any) -> str:
    dump = getattr(completion, "model_dump_json", None)
    return dump() if callable(dump) else repr(completion)
