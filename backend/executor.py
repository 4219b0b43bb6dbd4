# executor.py — LLM-backed free-text generation for task execution and posts
from llm import LLMClient

EXECUTE_MAX_TOKENS = 4096


class Executor:

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def generate(self, prompt: str) -> str:
        return (await self.llm.complete(prompt, EXECUTE_MAX_TOKENS)).strip()
