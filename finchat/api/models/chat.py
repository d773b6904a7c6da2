from pydantic import BaseModel, Field, StrictStr
from typing import List, Optional

class Source(BaseModel):
    url: str = Field(..., description="URL of the cited document")
    title: str = Field(..., description="Title of the cited document")

class ChatRequest(BaseModel):
    question: StrictStr = Field(..., min_length=1, description="The user's question")

class ChatResponse(BaseModel):
    answer: str = Field(..., description="Generated response")
    docs: Optional[List[Source]] = Field(
        default=None,
        description="Cited documents (reserved, omitted when unset)"
    )

class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
