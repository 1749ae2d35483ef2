from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

DocumentCategory = Literal[
    "general",
    "brand_guidelines",
    "style_guide",
    "product_info",
    "marketing",
    "research",
    "competitor",
    "testimonial",
    "reference",
    "template",
]

DocumentType = Literal["file", "text", "link"]
SearchMode = Literal["vector", "fulltext", "hybrid"]


class DocumentCreate(BaseModel):
    doc_type: DocumentType = "text"
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    extracted_text: Optional[str] = None
    url: Optional[str] = None
    category: DocumentCategory = "general"


class DocumentResponse(BaseModel):
    id: str
    brand_id: str
    user_id: Optional[str] = None
    doc_type: DocumentType
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    extracted_text: Optional[str] = None
    url: Optional[str] = None
    category: Optional[str] = "general"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SearchResultDocument(DocumentResponse):
    similarity: Optional[float] = None
    rank: Optional[float] = None
    score: Optional[float] = None


class SearchRequest(BaseModel):
    brand_id: str
    query: str = Field(..., min_length=1)
    limit: int = Field(5, ge=1, le=20)
    min_similarity: Optional[float] = Field(None, ge=0, le=1)
    categories: Optional[List[DocumentCategory]] = None
    search_mode: SearchMode = "hybrid"


class SearchResponse(BaseModel):
    documents: List[SearchResultDocument]
    search_mode: SearchMode
    total_results: int
    search_time_ms: int


class RAGContext(BaseModel):
    context: str = ""
    document_count: int = 0
    categories: List[str] = []
