# agents/subtask_agent.py
import logging
import time
from typing import Dict, List

from agents.client_factory import ClientFactory
from agents.error_classifier import classify
from agents.gemini_client import default_safety_settings, user_turn
from agents.response_sanitizer import sanitize_subtasks
from agents.schemas import SubtaskRequest
from core import metrics
from core.config import GatewaySettings
from core.exceptions import (
    ClassifiedError,
    ClientUnavailableError,
    ErrorKind,
    MalformedResponseError,
    SyntaxInvalidError,
)
from core.request_context import get_request_id

logger = logging.getLogger(__name__)

OPERATION = "generateSubtasksForTask"

SUBTASK_SYSTEM_INSTRUCTION = (
    "You are an efficient task-management assistant. Your job is to help the user break a main "
    "task down into actionable subtasks. Given the title of the main task and its category, "
    "produce 3-5 clear, concise subtasks. Each subtask should be a step that moves the main task "
    "towards completion. Reply with a JSON array of strings only, one string per subtask. Do not "
    "add any explanation outside the JSON array and do not use Markdown code fences (```json ... ```)."
)

PARSE_FAILED_MESSAGE = "Failed to parse AI subtask response."
INVALID_FORMAT_MESSAGE = "AI returned an invalid format for subtasks."


def build_subtask_prompt(request: SubtaskRequest) -> str:
    return (
        f'Main task: "{request.task_title}"\n'
        f'Category: "{request.category}"\n\n'
        "Please create the subtasks as a JSON array of strings."
    )


class SubtaskAgent:
    """
    One non-streamed call that must come back as a JSON array of strings.

    generate_subtasks() returns the list or raises:
      - ClientUnavailableError: no call was attempted
      - ClassifiedError: the call failed, or its payload was malformed
    """

    def __init__(self, client_factory: ClientFactory, settings: GatewaySettings):
        self.client_factory = client_factory
        self.settings = settings

    def build_config(self, model: str) -> Dict:
        config: Dict = {
            "system_instruction": SUBTASK_SYSTEM_INSTRUCTION,
            "response_mime_type": "application/json",
        }
        if model in self.settings.no_thinking_models:
            config["thinking_config"] = {"thinking_budget": 0}
        if self.settings.safety_filters:
            config["safety_settings"] = default_safety_settings()
        return config

    async def generate_subtasks(self, request: SubtaskRequest) -> List[str]:
        model = request.selected_model or self.settings.default_model
        request_id = get_request_id()

        try:
            client = self.client_factory.resolve_client(request.custom_api_key)
        except ClientUnavailableError:
            metrics.record_subtask_result("unavailable")
            raise

        start = time.monotonic()
        try:
            logger.info("Calling Gemini generateContent for subtasks", extra={
                "request_id": request_id,
                "model": model,
            })
            try:
                raw_text = await client.create_completion(
                    model=model,
                    contents=[user_turn(build_subtask_prompt(request))],
                    config=self.build_config(model),
                )
            except Exception as e:
                metrics.record_subtask_result("error", time.monotonic() - start)
                raise classify(e, OPERATION, model) from e

            try:
                subtasks = sanitize_subtasks(raw_text)
            except MalformedResponseError as e:
                stage = "syntax" if isinstance(e, SyntaxInvalidError) else "shape"
                logger.error("Subtask response rejected", extra={
                    "request_id": request_id,
                    "model": model,
                    "stage": stage,
                    "raw": raw_text,
                })
                metrics.record_subtask_result("malformed", time.monotonic() - start)
                raise ClassifiedError(
                    kind=ErrorKind.MALFORMED_RESPONSE,
                    message=PARSE_FAILED_MESSAGE if stage == "syntax" else INVALID_FORMAT_MESSAGE,
                    model_used=model,
                    operation=OPERATION,
                    detail=raw_text,
                ) from e
        finally:
            await client.close()

        metrics.record_subtask_result("success", time.monotonic() - start)
        logger.info("Subtasks generated", extra={
            "request_id": request_id,
            "model": model,
            "count": len(subtasks),
        })
        return subtasks
