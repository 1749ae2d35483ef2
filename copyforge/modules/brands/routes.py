from fastapi import APIRouter, Depends, HTTPException
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.brands.schemas import BrandCreate, BrandUpdate, BrandResponse, BrandVoice
from copyforge.modules.brands.service import BrandService
from copyforge.modules.rag.schemas import DocumentCreate, DocumentResponse
from copyforge.modules.rag.service import RAGService
from copyforge.modules.rag.routes import get_rag_service
from copyforge.core.dependencies import require_organization, check_brand_access
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/brands", tags=["brands"])


def get_brand_service(supabase: Client = Depends(get_supabase)) -> BrandService:
    return BrandService(supabase)


@router.get("", response_model=List[BrandResponse])
async def list_brands(
    user_data: Dict = Depends(require_organization),
    service: BrandService = Depends(get_brand_service)
):
    """List brands in the caller's organization"""
    return service.list_brands(user_data["organization_id"])


@router.post("", response_model=BrandResponse, status_code=201)
async def create_brand(
    brand_data: BrandCreate,
    user_data: Dict = Depends(require_organization),
    service: BrandService = Depends(get_brand_service)
):
    """Create a brand (requires admin or brand_manager)"""
    return service.create_brand(brand_data, user_data)


@router.get("/latest", response_model=BrandResponse)
async def get_latest_brand(
    user_data: Dict = Depends(require_organization),
    service: BrandService = Depends(get_brand_service)
):
    """Most recently updated brand visible to the caller"""
    return service.get_latest_brand(user_data["organization_id"])


@router.get("/{brand_id}", response_model=BrandResponse)
async def get_brand(
    brand_id: str,
    user_data: Dict = Depends(require_organization),
    supabase: Client = Depends(get_supabase)
):
    return BrandResponse(**check_brand_access(brand_id, user_data, supabase))


@router.patch("/{brand_id}", response_model=BrandResponse)
async def update_brand(
    brand_id: str,
    brand_data: BrandUpdate,
    user_data: Dict = Depends(require_organization),
    service: BrandService = Depends(get_brand_service),
    supabase: Client = Depends(get_supabase)
):
    check_brand_access(brand_id, user_data, supabase, write=True)
    return service.update_brand(brand_id, brand_data)


@router.put("/{brand_id}/voice", response_model=BrandResponse)
async def update_brand_voice(
    brand_id: str,
    voice: BrandVoice,
    user_data: Dict = Depends(require_organization),
    service: BrandService = Depends(get_brand_service),
    supabase: Client = Depends(get_supabase)
):
    """Replace the structured brand voice"""
    check_brand_access(brand_id, user_data, supabase, write=True)
    return service.update_brand_voice(brand_id, voice)


@router.delete("/{brand_id}", status_code=204)
async def delete_brand(
    brand_id: str,
    user_data: Dict = Depends(require_organization),
    service: BrandService = Depends(get_brand_service),
    supabase: Client = Depends(get_supabase)
):
    check_brand_access(brand_id, user_data, supabase, write=True)
    if not service.delete_brand(brand_id):
        raise HTTPException(status_code=404, detail="Brand not found")
    return None


@router.get("/{brand_id}/documents", response_model=List[DocumentResponse])
async def list_brand_documents(
    brand_id: str,
    doc_type: Optional[str] = None,
    user_data: Dict = Depends(require_organization),
    rag_service: RAGService = Depends(get_rag_service),
    supabase: Client = Depends(get_supabase)
):
    check_brand_access(brand_id, user_data, supabase)
    return rag_service.list_documents(brand_id, doc_type)


@router.post("/{brand_id}/documents", response_model=DocumentResponse, status_code=201)
async def add_brand_document(
    brand_id: str,
    doc_data: DocumentCreate,
    user_data: Dict = Depends(require_organization),
    rag_service: RAGService = Depends(get_rag_service),
    supabase: Client = Depends(get_supabase)
):
    """Add a document to the brand knowledge base (embedded for search)"""
    check_brand_access(brand_id, user_data, supabase, write=True)
    return rag_service.add_document(brand_id, user_data["id"], doc_data)


@router.delete("/{brand_id}/documents/{document_id}", status_code=204)
async def delete_brand_document(
    brand_id: str,
    document_id: str,
    user_data: Dict = Depends(require_organization),
    rag_service: RAGService = Depends(get_rag_service),
    supabase: Client = Depends(get_supabase)
):
    check_brand_access(brand_id, user_data, supabase, write=True)
    if not rag_service.delete_document(brand_id, document_id):
        raise HTTPException(status_code=404, detail="Document not found")
    return None
