from typing import List, Optional, Protocol, Tuple

# (role, text) where role is "user" or "model"
ChatTurn = Tuple[str, str]


class AIProvider(Protocol):
    def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        ...

    def chat(self, history: List[ChatTurn], message: str, system_instruction: Optional[str] = None) -> str:
        ...
