import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from langchain_core.embeddings import Embeddings
from supabase import Client

from copyforge.config import settings
from copyforge.core.llm import make_embeddings
from copyforge.modules.rag.ranking import reciprocal_rank_fusion, weighted_merge
from copyforge.modules.rag.schemas import (
    DocumentCreate, DocumentResponse, RAGContext, SearchRequest, SearchResponse, SearchResultDocument
)

logger = logging.getLogger(__name__)

# Query embeddings, keyed by text
_EMBEDDING_CACHE: Dict[str, tuple] = {}
_EMBEDDING_CACHE_TTL_SEC = 300
_EMBEDDING_CACHE_MAX_SIZE = 100
_EMBEDDING_MAX_CHARS = 30000
CONTEXT_MAX_CHARS = 1500
# Candidate pool multiplier when a category filter is applied after the RPC
CATEGORY_OVERFETCH = 4

DOC_TYPE_LABELS = {
    "file": "Document",
    "text": "Note",
    "link": "Reference",
}


def clear_embedding_cache() -> None:
    _EMBEDDING_CACHE.clear()


def filter_categories(documents: List[Dict[str, Any]], categories: Optional[List[str]]) -> List[Dict[str, Any]]:
    if not categories:
        return documents
    return [doc for doc in documents if doc.get("category") in categories]


def build_rag_context(documents: List[Dict[str, Any]]) -> RAGContext:
    """Format retrieved documents as a <brand_documents> prompt block"""
    if not documents:
        return RAGContext()

    categories: List[str] = []
    sections = []
    for doc in documents:
        category = doc.get("category")
        if category and category not in categories:
            categories.append(category)

        label = DOC_TYPE_LABELS.get(doc.get("doc_type"), "Document")
        category_label = f" ({category.replace('_', ' ')})" if category else ""
        content = doc.get("content") or doc.get("extracted_text") or ""
        if len(content) > CONTEXT_MAX_CHARS:
            content = content[:CONTEXT_MAX_CHARS] + "... [truncated]"
        description = f"> {doc['description']}\n" if doc.get("description") else ""
        sections.append(f"### {label}{category_label}: {doc.get('title', '')}\n{description}{content}")

    context = (
        "\n<brand_documents>\n"
        "The following are relevant documents from the brand's knowledge base that may inform your response:\n\n"
        + "\n\n---\n\n".join(sections)
        + "\n</brand_documents>\n"
    )
    return RAGContext(context=context, document_count=len(documents), categories=categories)


class RAGService:
    def __init__(self, supabase: Client, embeddings: Optional[Embeddings] = None):
        self.supabase = supabase
        self._embeddings = embeddings

    @property
    def embeddings(self) -> Embeddings:
        if self._embeddings is None:
            self._embeddings = make_embeddings()
        return self._embeddings

    def embed(self, text: str) -> List[float]:
        """Embed text, caching query embeddings for a few minutes"""
        now = time.monotonic()
        cached = _EMBEDDING_CACHE.get(text)
        if cached:
            embedding, expiry = cached
            if now < expiry:
                logger.debug("Using cached embedding")
                return embedding
            del _EMBEDDING_CACHE[text]

        embedding = self.embeddings.embed_query(text[:_EMBEDDING_MAX_CHARS])

        if len(_EMBEDDING_CACHE) >= _EMBEDDING_CACHE_MAX_SIZE:
            # Evict the oldest entry
            _EMBEDDING_CACHE.pop(next(iter(_EMBEDDING_CACHE)), None)
        _EMBEDDING_CACHE[text] = (embedding, now + _EMBEDDING_CACHE_TTL_SEC)
        return embedding

    # ---- search ----

    def vector_search(self, brand_id: str, user_id: str, query: str, limit: int,
                      min_similarity: float, categories: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """
        Similarity search through the match RPC. The RPC has no category
        parameter, so with categories the pool is widened and filtered here
        before truncating to `limit`.
        """
        try:
            result = self.supabase.rpc("match_brand_documents_v2", {
                "query_embedding": self.embed(query),
                "match_threshold": min_similarity,
                "match_count": limit * CATEGORY_OVERFETCH if categories else limit,
                "brand_id_filter": brand_id,
                "user_id": user_id,
            }).execute()
            return filter_categories(result.data or [], categories)[:limit]
        except Exception as e:
            logger.error(f"Vector search failed for brand {brand_id}: {e}")
            return []

    def fulltext_search(self, brand_id: str, user_id: str, query: str, limit: int,
                        categories: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.rpc("search_brand_documents_v2", {
                "search_query": query,
                "brand_id_filter": brand_id,
                "user_id": user_id,
                "doc_type_filter": None,
                # the RPC filters on one category; several are filtered here
                "category_filter": categories[0] if categories and len(categories) == 1 else None,
                "limit_count": limit * CATEGORY_OVERFETCH if categories and len(categories) > 1 else limit,
            }).execute()
            return filter_categories(result.data or [], categories)[:limit]
        except Exception as e:
            logger.error(f"Full-text search failed for brand {brand_id}: {e}")
            return []

    def hybrid_search(self, brand_id: str, user_id: str, query: str, limit: int,
                      min_similarity: float, categories: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        vector_results = self.vector_search(brand_id, user_id, query, limit * 2, min_similarity, categories)
        keyword_results = self.fulltext_search(brand_id, user_id, query, limit * 2, categories)
        logger.debug(f"Hybrid search: vector={len(vector_results)}, fulltext={len(keyword_results)}")

        if settings.rag_fusion == "rrf":
            return reciprocal_rank_fusion(vector_results, keyword_results, limit)
        return weighted_merge(
            vector_results,
            keyword_results,
            limit,
            vector_weight=settings.rag_vector_weight,
            keyword_weight=settings.rag_keyword_weight,
        )

    def search(self, request: SearchRequest, user_id: str) -> SearchResponse:
        """Run a search in the requested mode. Never raises for provider or RPC failures."""
        started = time.monotonic()
        min_similarity = request.min_similarity
        if min_similarity is None:
            min_similarity = settings.rag_min_similarity

        if request.search_mode == "vector":
            documents = self.vector_search(
                request.brand_id, user_id, request.query, request.limit, min_similarity, request.categories
            )
        elif request.search_mode == "fulltext":
            documents = self.fulltext_search(request.brand_id, user_id, request.query, request.limit, request.categories)
        else:
            documents = self.hybrid_search(
                request.brand_id, user_id, request.query, request.limit, min_similarity, request.categories
            )

        return SearchResponse(
            documents=[SearchResultDocument(**doc) for doc in documents],
            search_mode=request.search_mode,
            total_results=len(documents),
            search_time_ms=int((time.monotonic() - started) * 1000),
        )

    def get_context(self, brand_id: Optional[str], user_id: str, query: str,
                    limit: Optional[int] = None) -> RAGContext:
        """Search + context building for the chat flow; empty context on any failure"""
        if not brand_id or not query:
            return RAGContext()
        try:
            response = self.search(
                SearchRequest(brand_id=brand_id, query=query, limit=limit or settings.rag_default_limit),
                user_id,
            )
            logger.info(
                f"Retrieved {response.total_results} documents in {response.search_time_ms}ms ({response.search_mode})"
            )
            return build_rag_context([doc.model_dump() for doc in response.documents])
        except Exception as e:
            logger.error(f"Failed to build RAG context: {e}")
            return RAGContext()

    # ---- document management ----

    def add_document(self, brand_id: str, user_id: str, doc_data: DocumentCreate) -> DocumentResponse:
        """Store a document with its embedding. Embedding failures store the row without one."""
        try:
            payload = doc_data.model_dump()
            text = "\n\n".join(
                part for part in (doc_data.title, doc_data.description, doc_data.content, doc_data.extracted_text)
                if part
            )
            embedding = None
            try:
                embedding = self.embeddings.embed_documents([text[:_EMBEDDING_MAX_CHARS]])[0]
            except Exception as e:
                logger.warning(f"Embedding failed for document '{doc_data.title}': {e}")

            result = self.supabase.table("brand_documents").insert({
                **payload,
                "brand_id": brand_id,
                "user_id": user_id,
                "embedding": embedding,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create document")

            return DocumentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_documents(self, brand_id: str, doc_type: Optional[str] = None) -> List[DocumentResponse]:
        try:
            query = self.supabase.table("brand_documents")\
                .select("id, brand_id, user_id, doc_type, title, description, content, extracted_text, url, category, created_at")\
                .eq("brand_id", brand_id)
            if doc_type:
                query = query.eq("doc_type", doc_type)
            result = query.order("created_at", desc=True).execute()
            return [DocumentResponse(**doc) for doc in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_document(self, brand_id: str, document_id: str) -> bool:
        try:
            result = self.supabase.table("brand_documents")\
                .delete()\
                .eq("id", document_id)\
                .eq("brand_id", brand_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
