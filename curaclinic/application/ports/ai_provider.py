from typing import Protocol


class AIProvider(Protocol):
    def complete(self, system_prompt: str, message: str) -> str:
        ...
