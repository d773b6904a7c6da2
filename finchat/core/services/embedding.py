from typing import List, Optional
import google.generativeai as genai
from finchat.utils.logging import logger
from finchat.config.settings import settings

class EmbeddingService:
    def __init__(
        self,
        model: Optional[str] = None,
        dimensions: Optional[int] = None
    ):
        genai.configure(api_key=settings.GOOGLE_API_KEY)
        self.model = model or settings.EMBEDDING_MODEL
        self.dimensions = dimensions if dimensions is not None else settings.EMBEDDING_DIMENSIONS

    async def get_embedding(self, text: str) -> List[float]:
        try:
            text = text.replace("\n", " ")
            if len(text) > 8000:
                text = text[:8000] + "..."

            kwargs = {}
            if self.dimensions:
                kwargs["output_dimensionality"] = self.dimensions

            response = await genai.embed_content_async(
                model=self.model,
                content=text,
                task_type="retrieval_query",
                **kwargs
            )
            return response['embedding']
        except Exception as e:
            logger.error(f"Error getting embedding: {e}")
            raise
