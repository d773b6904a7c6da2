from typing import Any, Dict, List, Optional
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
import json
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from finchat.config.settings import settings
from finchat.core.models.chat import ConversationTurn, FactRow, FormulaDefinition
from finchat.utils.errors import StoreUnavailable
from finchat.utils.logging import logger

class DatabaseService:
    """Accessors for chat history, the formula knowledge base and fact rows.

    Every user-scoped statement runs inside a transaction that forwards the
    caller's id as ``request.jwt.claims`` so store-side row-level security
    policies see the same identity as the explicit ``user_id`` filters.
    """

    def __init__(
        self,
        pool: Optional[AsyncConnectionPool] = None,
        forward_jwt_claims: Optional[bool] = None
    ):
        self.pool = pool
        self.forward_jwt_claims = (
            settings.DB_FORWARD_JWT_CLAIMS if forward_jwt_claims is None else forward_jwt_claims
        )
        if self.pool is None:
            self.init_pool()

    def init_pool(self):
        """Create the (still closed) connection pool."""
        try:
            debug_params = {
                "dbname": settings.POSTGRES_DB,
                "user": settings.POSTGRES_USER,
                "password": "****",
                "host": settings.POSTGRES_HOST,
                "port": settings.POSTGRES_PORT,
            }
            logger.info(f"Connection parameters: {debug_params}")

            self.pool = AsyncConnectionPool(
                conninfo=settings.postgres_conninfo,
                min_size=settings.POSTGRES_POOL_MIN_SIZE,
                max_size=settings.POSTGRES_POOL_MAX_SIZE,
                timeout=settings.POSTGRES_POOL_TIMEOUT,
                open=False
            )
        except Exception as e:
            logger.error(f"Failed to initialize connection pool: {e}")
            raise

    async def open(self):
        await self.pool.open()

    async def close(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
        reraise=True
    )
    async def _ping(self):
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")

    async def check_health(self) -> bool:
        """Check database connectivity."""
        try:
            await self._ping()
            return True
        except psycopg.Error as e:
            logger.error(f"Database health check failed: {e}")
            return False

    @asynccontextmanager
    async def _session(self, user_id: Optional[str] = None):
        async with self.pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor(row_factory=dict_row) as cur:
                    if user_id and self.forward_jwt_claims:
                        claims = json.dumps({"sub": user_id, "role": "authenticated"})
                        await cur.execute(
                            "SELECT set_config('request.jwt.claims', %s, true)",
                            (claims,)
                        )
                    yield cur

    async def load_history(
        self,
        user_id: str,
        limit_pairs: Optional[int] = None
    ) -> List[ConversationTurn]:
        """Return the caller's newest turns, oldest first."""
        limit_pairs = settings.HISTORY_LIMIT if limit_pairs is None else limit_pairs
        try:
            async with self._session(user_id) as cur:
                await cur.execute(
                    """
                    SELECT user_id::text AS user_id, role, content, created_at
                    FROM chat_history
                    WHERE user_id = %s
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s
                    """,
                    (user_id, limit_pairs * 2)
                )
                rows = await cur.fetchall()
        except psycopg.Error as e:
            logger.error(f"Error loading history for user {user_id}: {e}")
            raise StoreUnavailable(str(e)) from e

        return [ConversationTurn(**row) for row in reversed(rows)]

    async def append_turns(
        self,
        user_id: str,
        question: str,
        answer: str
    ) -> List[ConversationTurn]:
        """Append the user question and the assistant answer, in that order."""
        asked_at = datetime.now(timezone.utc)
        turns = [
            ConversationTurn(user_id=user_id, role="user", content=question, created_at=asked_at),
            ConversationTurn(
                user_id=user_id,
                role="assistant",
                content=answer,
                created_at=asked_at + timedelta(microseconds=1)
            ),
        ]
        params: List[Any] = []
        for turn in turns:
            params.extend([turn.user_id, turn.role, turn.content, turn.created_at])

        try:
            async with self._session(user_id) as cur:
                await cur.execute(
                    """
                    INSERT INTO chat_history (user_id, role, content, created_at)
                    VALUES (%s, %s, %s, %s), (%s, %s, %s, %s)
                    """,
                    params
                )
        except psycopg.Error as e:
            logger.error(f"Error saving turns for user {user_id}: {e}")
            raise StoreUnavailable(str(e)) from e

        return turns

    async def fetch_formulas(self) -> List[FormulaDefinition]:
        try:
            async with self._session() as cur:
                await cur.execute(
                    "SELECT title, content FROM financial_kb ORDER BY created_at, title"
                )
                rows = await cur.fetchall()
        except psycopg.Error as e:
            logger.error(f"Error reading knowledge base: {e}")
            raise StoreUnavailable(str(e)) from e

        return [FormulaDefinition(**row) for row in rows]

    async def match_documents(
        self,
        query_embedding: List[float],
        user_id: Optional[str] = None,
        match_threshold: Optional[float] = None,
        match_count: Optional[int] = None
    ) -> List[FactRow]:
        """Rank fact rows with the store-side ``match_documents`` procedure."""
        match_threshold = settings.MATCH_THRESHOLD if match_threshold is None else match_threshold
        match_count = settings.MATCH_COUNT if match_count is None else match_count

        args: Dict[str, Any] = {
            "query_embedding": query_embedding,
            "match_threshold": match_threshold,
            "match_count": match_count,
        }
        user_filter = ""
        if user_id:
            args["p_user_id"] = user_id
            user_filter = "p_user_id => %(p_user_id)s, "

        query = f"""
            SELECT id::text AS id, user_id::text AS user_id, source_table,
                   source_id::text AS source_id, content
            FROM match_documents(
                {user_filter}query_embedding => %(query_embedding)s::vector,
                match_threshold => %(match_threshold)s,
                match_count => %(match_count)s
            )
        """

        logger.info(f"Matching documents for user {user_id} with limit {match_count}")
        try:
            async with self._session(user_id) as cur:
                await cur.execute(query, args)
                rows = await cur.fetchall()
        except psycopg.Error as e:
            logger.error(f"Error matching documents: {e}")
            raise StoreUnavailable(str(e)) from e

        return [FactRow(**row) for row in rows]
