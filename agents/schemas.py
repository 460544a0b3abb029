# agents/schemas.py
"""
Request models shared by the agents and the HTTP layer.

Wire names are the camelCase names clients already send
(systemInstruction, userPrompt, chatHistory, selectedModel, customApiKey);
Python code uses the snake_case attribute names.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ALLOWED_ROLES = ("user", "model")


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    text: str

    def to_content(self) -> dict:
        return {"role": self.role, "parts": [{"text": self.text}]}


class GenerationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    system_instruction: Optional[str] = Field(None, alias="systemInstruction")
    user_prompt: str = Field("", alias="userPrompt")
    # Kept loose on purpose: malformed turns are dropped, not rejected
    chat_history: List[Any] = Field(default_factory=list, alias="chatHistory")
    selected_model: Optional[str] = Field(None, alias="selectedModel")
    custom_api_key: Optional[str] = Field(None, alias="customApiKey", repr=False)

    @field_validator("chat_history", mode="before")
    @classmethod
    def history_defaults_to_empty(cls, v):
        if v is None:
            return []
        return v if isinstance(v, list) else []

    @field_validator("user_prompt", mode="before")
    @classmethod
    def prompt_defaults_to_empty(cls, v):
        return "" if v is None else v

    def conversation_turns(self) -> List[ConversationTurn]:
        """History turns with a known role and non-empty text, in their original order."""
        turns = []
        for item in self.chat_history:
            if not isinstance(item, dict):
                continue
            role = item.get("role")
            text = item.get("text")
            if role in ALLOWED_ROLES and isinstance(text, str) and text:
                turns.append(ConversationTurn(role=role, text=text))
        return turns


class SubtaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_title: str = Field(..., alias="taskTitle")
    task_category: Optional[str] = Field(None, alias="taskCategory")
    selected_model: Optional[str] = Field(None, alias="selectedModel")
    custom_api_key: Optional[str] = Field(None, alias="customApiKey", repr=False)

    @property
    def category(self) -> str:
        return self.task_category or "general"
