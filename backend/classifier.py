# classifier.py — LLM-backed task triage and task-file parsing
"""
The classifier model answers in free text that is supposed to be JSON.
Output is decoded strictly: Markdown code fences are stripped, the rest must
parse as JSON and validate against the pydantic models below. Anything else
is a ClassificationError / ParseError, never a guessed default.
"""
import json
import logging
import re
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from errors import ClassificationError, ParseError
from llm import LLMClient
import prompts

logger = logging.getLogger("digital-coo.classifier")

TRIAGE_MAX_TOKENS = 1024
PARSE_MAX_TOKENS = 4096
MAX_TITLE_LENGTH = 500

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


class TriageResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: Literal["auto_execute", "delegate_agent", "human_required"]
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str = ""
    suggested_agent: Optional[str] = Field(default=None, alias="suggestedAgent")


class ParsedTask(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    priority: Optional[str] = None
    project_name: Optional[str] = Field(default=None, alias="projectName")

    @field_validator("title", mode="before")
    @classmethod
    def clip_title(cls, v):
        if isinstance(v, str) and len(v) > MAX_TITLE_LENGTH:
            logger.warning(f"Parsed task title clipped from {len(v)} characters")
            return v[:MAX_TITLE_LENGTH]
        return v


class _ParsedTaskFile(BaseModel):
    tasks: List[ParsedTask]


def strip_code_fences(text: str) -> str:
    text = (text or "").strip()
    match = _FENCE_RE.match(text)
    return match.group(1).strip() if match else text


def decode_triage(text: str) -> TriageResult:
    try:
        return TriageResult.model_validate(json.loads(strip_code_fences(text)))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.warning(f"Unreadable triage output: {e}")
        raise ClassificationError("Classifier returned an invalid triage result")


def decode_task_file(text: str) -> List[ParsedTask]:
    try:
        return _ParsedTaskFile.model_validate(json.loads(strip_code_fences(text))).tasks
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.warning(f"Unreadable task-file output: {e}")
        raise ParseError("Could not parse tasks from file")


class Classifier:

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def classify_task(self, title: str, description: Optional[str]) -> TriageResult:
        text = await self.llm.complete(prompts.triage_prompt(title, description), TRIAGE_MAX_TOKENS)
        return decode_triage(text)

    async def parse_task_file(self, raw_text: str) -> List[ParsedTask]:
        text = await self.llm.complete(prompts.parse_prompt(raw_text), PARSE_MAX_TOKENS)
        return decode_task_file(text)
