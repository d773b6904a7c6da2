from pathlib import Path
from typing import Literal, Optional
from pydantic_settings import BaseSettings

REFUSAL_MESSAGE = (
    "I’m a financial assistant and can only provide answers based on the "
    "financial data available to me."
)

DEFAULT_SYSTEM_PROMPT = " ".join([
    "You are a senior financial analyst assistant.",
    "For **financial** questions you may ONLY use supplied context.",
    "If missing data, reply exactly:",
    f'"{REFUSAL_MESSAGE}"',
    "For **meta** questions about prior answers you may explain reasoning.",
    "Always cite rows or formulas when giving numbers.",
])

class Settings(BaseSettings):
    # API Settings
    API_VERSION: str = "0.1.0"
    API_TITLE: str = "Finance Chat API"
    API_DESCRIPTION: str = "RAG-powered answers to questions about a user's own financial data"

    # Runtime
    ENV: Literal["dev", "prod"] = "dev"
    DEMO_USER_ID: Optional[str] = None

    # Google AI Settings
    GOOGLE_API_KEY: str
    LLM_MODEL: str = "gemini-1.5-flash-latest"
    EMBEDDING_MODEL: str = "models/text-embedding-004"
    EMBEDDING_DIMENSIONS: Optional[int] = None

    # PostgreSQL Settings
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_POOL_MIN_SIZE: int = 1
    POSTGRES_POOL_MAX_SIZE: int = 10
    POSTGRES_POOL_TIMEOUT: float = 30.0
    DB_FORWARD_JWT_CLAIMS: bool = True

    # Security
    JWT_SECRET: str
    JWT_AUDIENCE: str = "authenticated"
    CORS_ORIGIN: str = "*"

    # Chat Settings
    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT
    HISTORY_LIMIT: int = 10
    MATCH_COUNT: int = 50
    MATCH_THRESHOLD: float = 0.0
    TEMPERATURE: float = 0.0
    MAX_OUTPUT_TOKENS: int = 700

    # Logging
    LOG_LEVEL: str = "INFO"
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    @property
    def postgres_conninfo(self) -> str:
        conn_params = {
            "dbname": self.POSTGRES_DB,
            "user": self.POSTGRES_USER,
            "password": self.POSTGRES_PASSWORD,
            "host": self.POSTGRES_HOST,
            "port": self.POSTGRES_PORT,
        }
        return " ".join([f"{k}={v}" for k, v in conn_params.items()])

    @property
    def demo_user_id(self) -> Optional[str]:
        """Identity override, only ever honored outside production."""
        if self.ENV == "prod" or not self.DEMO_USER_ID:
            return None
        return self.DEMO_USER_ID

    class Config:
        env_file = ".env"

settings = Settings()
