from typing import Dict, List, Optional, Sequence
import google.generativeai as genai
from finchat.config.settings import settings
from finchat.core.models.chat import ConversationTurn, PromptContext
from finchat.utils.errors import CompletionFailed
from finchat.utils.logging import logger

# Gemini names the assistant side of a conversation "model"
_ROLE_MAP = {"user": "user", "assistant": "model"}

class CompletionService:
    def __init__(
        self,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None
    ):
        genai.configure(api_key=settings.GOOGLE_API_KEY)
        self.model_name = model or settings.LLM_MODEL
        self.system_prompt = system_prompt or settings.SYSTEM_PROMPT
        self.temperature = settings.TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or settings.MAX_OUTPUT_TOKENS

    def build_system_instruction(self, context: PromptContext) -> List[str]:
        """Policy first, then the rendered context, as two system parts."""
        return [self.system_prompt, context.render()]

    def build_contents(
        self,
        history: Sequence[ConversationTurn],
        question: str
    ) -> List[Dict]:
        contents = [
            {"role": _ROLE_MAP[turn.role], "parts": [turn.content]}
            for turn in history
        ]
        contents.append({"role": "user", "parts": [question]})
        return contents

    async def complete(
        self,
        history: Sequence[ConversationTurn],
        context: PromptContext,
        question: str
    ) -> str:
        """Generate the answer text for ``question`` grounded on ``context``."""
        try:
            model = genai.GenerativeModel(
                self.model_name,
                system_instruction=self.build_system_instruction(context)
            )
            response = await model.generate_content_async(
                self.build_contents(history, question),
                generation_config=genai.GenerationConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens
                )
            )
            # .text reads the first candidate and raises ValueError when it is blocked or empty
            text = response.text.strip()
        except Exception as e:
            logger.error(f"Error generating response: {e}")
            raise CompletionFailed(str(e)) from e

        if not text:
            raise CompletionFailed("empty response from model")
        return text
