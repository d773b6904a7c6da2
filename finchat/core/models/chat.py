from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

FORMULAS_LABEL = "--- FINANCIAL FORMULAS ---"
DATA_ROWS_LABEL = "--- USER DATA ROWS ---"

class ConversationTurn(BaseModel):
    user_id: str
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime

class FactRow(BaseModel):
    id: str
    user_id: str
    source_table: str
    source_id: str
    content: str
    embedding: Optional[List[float]] = None

class FormulaDefinition(BaseModel):
    title: str
    content: str

class PromptContext(BaseModel):
    """Request-scoped context handed to the completion model."""
    formulas: List[FormulaDefinition] = Field(default_factory=list)
    rows: List[FactRow] = Field(default_factory=list)

    def render(self) -> str:
        kb_text = "\n".join(f"**{d.title}**: {d.content}" for d in self.formulas)
        data_text = "\n---\n".join(r.content for r in self.rows)
        return "\n".join([
            FORMULAS_LABEL,
            kb_text,
            "",
            DATA_ROWS_LABEL,
            data_text,
        ])
