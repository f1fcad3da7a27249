from dataclasses import dataclass
from typing import List, Optional
import logging

from ..ports.ai_provider import AIProvider, ChatTurn
from ...exceptions import AIProviderError, BookingValidationError

logger = logging.getLogger(__name__)

CHAT_ROLES = ("user", "model")


@dataclass
class AssistantService:
    ai_provider: Optional[AIProvider]
    doctor_name: str = "Dr. Atamosa"

    @property
    def system_instruction(self) -> str:
        return (
            f"You are a concise clinical assistant for {self.doctor_name}, a pediatrician. "
            "Answer medical questions accurately, flag uncertainty, and never invent patient data."
        )

    def greeting(self) -> str:
        return f"Maayong adlaw, {self.doctor_name}. I am your Clinical Assistant. How can I help you today?"

    def reply(self, history: List[ChatTurn], message: str) -> str:
        if not (message or "").strip():
            raise BookingValidationError("Message text is required")
        if self.ai_provider is None:
            raise AIProviderError("AI assistant is not configured")
        for role, _ in history:
            if role not in CHAT_ROLES:
                raise BookingValidationError(f"Invalid chat role '{role}'")
        # The greeting is UI chrome, not conversation
        turns = [(r, t) for r, t in history if t and t != self.greeting()]
        return self.ai_provider.chat(turns, message.strip(), system_instruction=self.system_instruction)
