# prompts.py — Prompt templates for the classifier and executor models
from typing import Optional

TRIAGE_PROMPT = """You are a Digital COO assistant. Analyze this task and determine the best category:

Task Title: {title}
Task Description: {description}

Categories:
1. auto_execute - Tasks that can be automated (content generation, web scraping, file processing)
2. delegate_agent - Tasks that need a specialized agent (complex content, multi-step processes)
3. human_required - Tasks that need human judgment or decision-making

Respond with JSON only:
{{
  "category": "auto_execute" | "delegate_agent" | "human_required",
  "confidence": 0.0-1.0,
  "reasoning": "brief explanation",
  "suggestedAgent": "optional agent name if delegate_agent"
}}"""

PARSE_PROMPT = """Parse the following task file and extract individual tasks. For each task, identify:
1. The task title/name
2. A description if available
3. Priority (urgent/high/medium/low) based on context
4. Related project name if mentioned

Task file content:
{content}

Respond with JSON only:
{{
  "tasks": [
    {{
      "title": "task title",
      "description": "task description",
      "priority": "high|medium|low|urgent",
      "projectName": "project name if mentioned or null"
    }}
  ]
}}"""

EXECUTE_PROMPT = """Execute this task and provide the result:

Task: {title}
Description: {description}

Provide a detailed execution result."""

AGENT_INSTRUCTIONS = """Follow these agent instructions:

{instructions}

"""

# Ordered: posts are generated in this sequence
PLATFORM_REQUIREMENTS = {
    "x": "Max 280 characters, engaging, use relevant hashtags",
    "facebook": "Engaging, shareable, medium length",
    "linkedin": "Professional tone, industry insights",
    "instagram": "Visual-focused, use emojis sparingly, include hashtags",
    "tiktok_script": "Short video script, hook in first 3 seconds",
    "youtube_script": "Full video script with intro, body, CTA",
}

POST_PROMPT = """Generate a {platform} post based on this content:

{content}

Requirements:
- {requirements}

Return only the post content, no explanations."""


def triage_prompt(title: str, description: Optional[str]) -> str:
    return TRIAGE_PROMPT.format(title=title, description=description or "No description")


def parse_prompt(content: str) -> str:
    return PARSE_PROMPT.format(content=content)


def execute_prompt(title: str, description: Optional[str], agent_prompt: Optional[str] = None) -> str:
    prompt = EXECUTE_PROMPT.format(title=title, description=description or "No description")
    if agent_prompt:
        prompt = AGENT_INSTRUCTIONS.format(instructions=agent_prompt.strip()) + prompt
    return prompt


def post_prompt(platform: str, content: str) -> str:
    return POST_PROMPT.format(
        platform=platform,
        content=content,
        requirements=PLATFORM_REQUIREMENTS[platform],
    )
