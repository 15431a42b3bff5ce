import google.generativeai as genai
from ...core.config import settings
from ...application.ports.ai_provider import AIProvider


class GeminiProvider(AIProvider):
    def __init__(self, api_key: str = None, model_name: str = None) -> None:
        genai.configure(api_key=api_key or settings.GEMINI_API_KEY)
        self.model_name = model_name or settings.GEMINI_MODEL

    def complete(self, system_prompt: str, message: str) -> str:
        model = genai.GenerativeModel(self.model_name, system_instruction=system_prompt)
        result = model.generate_content(message)
        return getattr(result, "text", str(result))
