from typing import List
from finchat.core.models.chat import ConversationTurn
from finchat.core.services.completion import CompletionService
from finchat.core.services.context import ContextAssembler
from finchat.core.services.db_service import DatabaseService
from finchat.utils.errors import AppError, InternalError
from finchat.utils.logging import logger

class ChatService:
    """Runs history -> context -> completion -> persist for one question.

    Nothing is retried; the first failure aborts the request and nothing is
    written unless an answer was produced.
    """

    def __init__(
        self,
        db_service: DatabaseService,
        context_assembler: ContextAssembler,
        completion_service: CompletionService
    ):
        self.db_service = db_service
        self.context_assembler = context_assembler
        self.completion_service = completion_service

    async def load_history(self, user_id: str) -> List[ConversationTurn]:
        history = await self.db_service.load_history(user_id)
        logger.info(f"Loaded {len(history)} history turns for user {user_id}")
        return history

    async def answer(self, user_id: str, question: str) -> str:
        try:
            history = await self.load_history(user_id)
            context = await self.context_assembler.build(user_id, question)
            reply = await self.completion_service.complete(history, context, question)
            await self.db_service.append_turns(user_id, question, reply)
            return reply
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error answering for user {user_id}: {e}")
            raise InternalError(str(e)) from e
