from __future__ import annotations

import asyncio
import random
from typing import Optional, Protocol

from chat.core.state import Config
from chat.llm.client import LLMClient

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant. Format answers with light markdown: "
    "**bold**, *italic*, `inline code`, ``` fenced code ```, # headers and - lists."
)


class AnswerProvider(Protocol):
    async def get_answer(self, utterance: str) -> str: ...


def _canned_answers(question: str) -> list[str]:
    return [
        f'I understand you\'re asking about "{question}". Here\'s a detailed explanation...\n\n'
        "Here's some example code:\n\n"
        "```python\ndef example():\n    print('Hello, world!')\n    return True\n```\n\n"
        "Let me know if you need more details!",

        f'Thanks for your question about "{question}".\n\n'
        "Here's a code snippet that might help:\n\n"
        "```python\ndata = [1, 2, 3, 4, 5]\ndoubled = [item * 2 for item in data]\nprint(doubled)  # [2, 4, 6, 8, 10]\n```\n\n"
        "Is there anything else you'd like to know?",

        f'I\'d be happy to help with "{question}".\n\n'
        "Consider this approach:\n\n"
        "```css\n.container {\n  display: flex;\n  justify-content: center;\n  align-items: center;\n  height: 100vh;\n}\n```\n\n"
        "This should center your content both vertically and horizontally.",
    ]


class SimulatedAnswerProvider:
    """Offline stand-in for a model: waits a fixed delay, then returns a canned answer."""

    def __init__(self, delay_s: float = 1.5, rng: Optional[random.Random] = None) -> None:
        self.delay_s = delay_s
        self._rng = rng or random.Random()

    async def get_answer(self, utterance: str) -> str:
        if self.delay_s > 0:
            await asyncio.sleep(self.delay_s)
        return self._rng.choice(_canned_answers(utterance))


class LLMAnswerProvider:
    """Adapter over the blocking LLMClient; the request runs in the default executor."""

    def __init__(self, client: LLMClient, *, max_tokens: int = 1024, system_instruction: Optional[str] = SYSTEM_INSTRUCTION) -> None:
        self.client = client
        self.max_tokens = max_tokens
        self.system_instruction = system_instruction

    async def get_answer(self, utterance: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.client.generate(
                system_instruction=self.system_instruction,
                user_text=utterance,
                max_output_tokens=self.max_tokens,
            ),
        )


def build_answer_provider(cfg: Config) -> AnswerProvider:
    if cfg.provider in {"deepseek", "llm"}:
        return LLMAnswerProvider(LLMClient(model=cfg.model), max_tokens=cfg.max_tokens)
    if cfg.provider == "simulated":
        return SimulatedAnswerProvider(delay_s=cfg.answer_delay_s)
    raise ValueError(f"Unknown answer provider: {cfg.provider!r}")
