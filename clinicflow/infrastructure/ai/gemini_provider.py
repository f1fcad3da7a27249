import google.generativeai as genai
from typing import List, Optional, Sequence
import logging

from ...config import settings
from ...application.ports.ai_provider import AIProvider, ChatTurn
from ...exceptions import AIProviderError

logger = logging.getLogger(__name__)


def pick_model(available: Sequence[str], preferred: Sequence[str], default: str) -> str:
    """First preferred family that the account can see, else the configured default."""
    names = [n.replace("models/", "") for n in available]
    for family in preferred:
        match = next((n for n in names if family in n), None)
        if match:
            return match
    return default


class GeminiProvider(AIProvider):
    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None) -> None:
        genai.configure(api_key=api_key or settings.GEMINI_API_KEY)
        self._model_name = model_name

    @property
    def model_name(self) -> str:
        if self._model_name is None:
            self._model_name = self._discover_model()
        return self._model_name

    def _discover_model(self) -> str:
        try:
            available = [
                m.name for m in genai.list_models()
                if "generateContent" in getattr(m, "supported_generation_methods", [])
            ]
        except Exception as e:
            logger.warning(f"Gemini model discovery failed, using {settings.GEMINI_MODEL}: {e}")
            return settings.GEMINI_MODEL
        name = pick_model(available, settings.GEMINI_FALLBACK_MODELS, settings.GEMINI_MODEL)
        logger.info(f"Using Gemini model {name}")
        return name

    def _model(self, system_instruction: Optional[str]):
        return genai.GenerativeModel(self.model_name, system_instruction=system_instruction)

    def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        try:
            result = self._model(system_instruction).generate_content(prompt)
            return getattr(result, "text", str(result))
        except Exception as e:
            raise AIProviderError(f"Gemini request failed: {e}") from e

    def chat(self, history: List[ChatTurn], message: str, system_instruction: Optional[str] = None) -> str:
        try:
            session = self._model(system_instruction).start_chat(
                history=[{"role": role, "parts": [text]} for role, text in history]
            )
            result = session.send_message(message)
            return getattr(result, "text", str(result))
        except Exception as e:
            raise AIProviderError(f"Gemini request failed: {e}") from e
