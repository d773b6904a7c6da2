from typing import Optional
from finchat.config.settings import settings
from finchat.core.models.chat import PromptContext
from finchat.core.services.db_service import DatabaseService
from finchat.core.services.embedding import EmbeddingService
from finchat.utils.errors import ContextBuildFailed
from finchat.utils.logging import logger

class ContextAssembler:
    """Builds the formulas + ranked fact rows context for one question."""

    def __init__(
        self,
        db_service: DatabaseService,
        embedding_service: EmbeddingService,
        match_threshold: Optional[float] = None,
        match_count: Optional[int] = None
    ):
        self.db_service = db_service
        self.embedding_service = embedding_service
        self.match_threshold = settings.MATCH_THRESHOLD if match_threshold is None else match_threshold
        self.match_count = settings.MATCH_COUNT if match_count is None else match_count

    async def build(self, user_id: str, question: str) -> PromptContext:
        try:
            formulas = await self.db_service.fetch_formulas()
        except Exception as e:
            raise ContextBuildFailed(f"knowledge base read failed: {e}") from e

        try:
            query_embedding = await self.embedding_service.get_embedding(question)
        except Exception as e:
            raise ContextBuildFailed(f"embedding failed: {e}") from e

        try:
            rows = await self.db_service.match_documents(
                query_embedding,
                user_id=user_id,
                match_threshold=self.match_threshold,
                match_count=self.match_count
            )
        except Exception as e:
            raise ContextBuildFailed(f"similarity search failed: {e}") from e

        logger.info(f"Context for user {user_id}: {len(formulas)} formulas, {len(rows)} rows")
        return PromptContext(formulas=formulas, rows=rows)
