from copyforge.modules.rag.routes import get_rag_service
from copyforge.modules.rag.schemas import SearchRequest
from copyforge.modules.rag.service import RAGService, build_rag_context, clear_embedding_cache
from copyforge.main import app
from conftest import ORG_ID, auth_headers


class FakeEmbeddings:
    def __init__(self):
        self.queries = []

    def embed_query(self, text):
        self.queries.append(text)
        return [0.1, 0.2, 0.3]

    def embed_documents(self, texts):
        return [[0.1, 0.2, 0.3] for _ in texts]


def _doc(doc_id, **extra):
    row = {"id": doc_id, "brand_id": "brand-1", "doc_type": "text", "title": f"Doc {doc_id}", "category": "general"}
    row.update(extra)
    return row


def test_hybrid_search_merges_both_rpcs(fake_db):
    fake_db.rpc_handlers["match_brand_documents_v2"] = lambda params: [_doc("v1", similarity=0.9)]
    fake_db.rpc_handlers["search_brand_documents_v2"] = lambda params: [_doc("k1", rank=0.4)]
    service = RAGService(fake_db, embeddings=FakeEmbeddings())

    response = service.search(SearchRequest(brand_id="brand-1", query="summer sale", limit=5), "user-alice")

    assert [d.id for d in response.documents] == ["v1", "k1"]
    assert response.search_mode == "hybrid"
    assert response.total_results == 2
    vector_call = next(p for name, p in fake_db.rpc_calls if name == "match_brand_documents_v2")
    assert vector_call["match_count"] == 10
    assert vector_call["brand_id_filter"] == "brand-1"


def test_failed_vector_rpc_is_treated_as_empty(fake_db):
    def broken(params):
        raise RuntimeError("pgvector unavailable")

    fake_db.rpc_handlers["match_brand_documents_v2"] = broken
    fake_db.rpc_handlers["search_brand_documents_v2"] = lambda params: [_doc("k1", rank=0.4)]
    service = RAGService(fake_db, embeddings=FakeEmbeddings())

    response = service.search(SearchRequest(brand_id="brand-1", query="returns"), "user-alice")

    assert [d.id for d in response.documents] == ["k1"]


def test_no_documents_returns_empty_list_not_error(fake_db):
    service = RAGService(fake_db, embeddings=FakeEmbeddings())
    response = service.search(SearchRequest(brand_id="missing-brand", query="anything"), "user-alice")
    assert response.documents == []
    assert response.total_results == 0


def test_query_embeddings_are_cached(fake_db):
    clear_embedding_cache()
    embeddings = FakeEmbeddings()
    service = RAGService(fake_db, embeddings=embeddings)

    service.search(SearchRequest(brand_id="brand-1", query="holiday", search_mode="vector"), "user-alice")
    service.search(SearchRequest(brand_id="brand-1", query="holiday", search_mode="vector"), "user-alice")

    assert embeddings.queries == ["holiday"]


def test_category_filter_applies_to_results(fake_db):
    fake_db.rpc_handlers["match_brand_documents_v2"] = lambda params: [
        _doc("a", similarity=0.9, category="marketing"),
        _doc("b", similarity=0.8, category="research"),
    ]
    service = RAGService(fake_db, embeddings=FakeEmbeddings())

    response = service.search(
        SearchRequest(brand_id="brand-1", query="q", search_mode="vector", categories=["research"]), "user-alice"
    )

    assert [d.id for d in response.documents] == ["b"]


def test_category_filter_runs_before_truncation(fake_db):
    fake_db.rpc_handlers["match_brand_documents_v2"] = lambda params: (
        [_doc(f"g{i}", similarity=0.95 - i * 0.01, category="general") for i in range(4)]
        + [_doc(f"m{i}", similarity=0.5, category="marketing") for i in range(4)]
    )
    fake_db.rpc_handlers["search_brand_documents_v2"] = lambda params: [
        _doc("g9", rank=0.9, category="general"),
        _doc("m9", rank=0.2, category="marketing"),
    ]
    service = RAGService(fake_db, embeddings=FakeEmbeddings())

    response = service.search(
        SearchRequest(brand_id="brand-1", query="q", limit=3, categories=["marketing"]), "user-alice"
    )

    assert len(response.documents) == 3
    assert {d.category for d in response.documents} == {"marketing"}
    vector_call = next(p for name, p in fake_db.rpc_calls if name == "match_brand_documents_v2")
    assert vector_call["match_count"] == 24
    keyword_call = next(p for name, p in fake_db.rpc_calls if name == "search_brand_documents_v2")
    assert keyword_call["category_filter"] == "marketing"


def test_several_categories_are_filtered_locally(fake_db):
    fake_db.rpc_handlers["search_brand_documents_v2"] = lambda params: [
        _doc("a", rank=0.9, category="general"),
        _doc("b", rank=0.5, category="research"),
        _doc("c", rank=0.4, category="testimonial"),
    ]
    service = RAGService(fake_db, embeddings=FakeEmbeddings())

    response = service.search(
        SearchRequest(brand_id="brand-1", query="q", search_mode="fulltext", limit=2,
                      categories=["research", "testimonial"]),
        "user-alice",
    )

    assert [d.id for d in response.documents] == ["b", "c"]
    keyword_call = fake_db.rpc_calls[-1][1]
    assert keyword_call["category_filter"] is None
    assert keyword_call["limit_count"] == 8


def test_build_rag_context_truncates_and_collects_categories():
    documents = [
        {"title": "Guidelines", "doc_type": "file", "category": "brand_guidelines", "content": "x" * 2000},
        {"title": "Note", "doc_type": "text", "category": "brand_guidelines", "content": "Short note"},
        {"title": "Site", "doc_type": "link", "category": None, "content": "About page"},
    ]

    context = build_rag_context(documents)

    assert context.document_count == 3
    assert context.categories == ["brand_guidelines"]
    assert "... [truncated]" in context.context
    assert "### Document (brand guidelines): Guidelines" in context.context
    assert "### Reference: Site" in context.context
    assert context.context.count("---") == 2


def test_build_rag_context_empty():
    context = build_rag_context([])
    assert context.context == ""
    assert context.document_count == 0


def test_search_route_checks_brand_access(client, fake_db):
    brand = fake_db.seed("brands", {"organization_id": ORG_ID, "name": "Acme", "user_id": "user-alice"})
    other = fake_db.seed("brands", {"organization_id": "org-2", "name": "Rival", "user_id": "user-x"})
    fake_db.rpc_handlers["search_brand_documents_v2"] = lambda params: [_doc("k1", brand_id=brand["id"], rank=1.0)]
    app.dependency_overrides[get_rag_service] = lambda: RAGService(fake_db, embeddings=FakeEmbeddings())

    ok = client.post("/api/v1/rag/search", json={"brand_id": brand["id"], "query": "tone"}, headers=auth_headers())
    hidden = client.post("/api/v1/rag/search", json={"brand_id": other["id"], "query": "tone"}, headers=auth_headers())

    assert ok.status_code == 200
    assert [d["id"] for d in ok.json()["documents"]] == ["k1"]
    assert hidden.status_code == 404


def test_add_document_stores_embedding(client, fake_db):
    brand = fake_db.seed("brands", {"organization_id": ORG_ID, "name": "Acme", "user_id": "user-alice"})
    app.dependency_overrides[get_rag_service] = lambda: RAGService(fake_db, embeddings=FakeEmbeddings())

    response = client.post(
        f"/api/v1/brands/{brand['id']}/documents",
        json={"title": "Return policy", "content": "30 days, no questions asked", "category": "product_info"},
        headers=auth_headers(),
    )

    assert response.status_code == 201
    stored = fake_db.rows("brand_documents")[0]
    assert stored["embedding"] == [0.1, 0.2, 0.3]
    assert stored["brand_id"] == brand["id"]
