from fastapi import APIRouter, Depends
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.rag.schemas import SearchRequest, SearchResponse
from copyforge.modules.rag.service import RAGService
from copyforge.core.dependencies import get_current_user, check_brand_access
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/rag", tags=["rag"])


def get_rag_service(supabase: Client = Depends(get_supabase)) -> RAGService:
    return RAGService(supabase)


@router.post("/search", response_model=SearchResponse)
async def search_documents(
    search_data: SearchRequest,
    current_user: Dict = Depends(get_current_user),
    service: RAGService = Depends(get_rag_service),
    supabase: Client = Depends(get_supabase)
):
    """Search a brand's knowledge base (vector, fulltext or hybrid)"""
    check_brand_access(search_data.brand_id, current_user, supabase)
    return service.search(search_data, current_user["id"])
