"""
Brand document table schema (Supabase/PostgreSQL with pgvector)

Table: brand_documents
- id: UUID (Primary Key)
- brand_id: UUID (Foreign Key -> brands.id)
- user_id: UUID (Foreign Key -> auth.users.id)
- doc_type: VARCHAR ('file' | 'text' | 'link')
- title: VARCHAR
- description: TEXT (nullable)
- content: TEXT (nullable)
- extracted_text: TEXT (nullable)
- url: VARCHAR (nullable)
- category: VARCHAR (general, brand_guidelines, style_guide, product_info, ...)
- embedding: VECTOR(1536) (nullable)
- created_at: TIMESTAMP

RPC functions:
- match_brand_documents_v2(query_embedding, match_threshold, match_count, brand_id_filter, user_id)
  -> rows with a `similarity` column
- search_brand_documents_v2(search_query, brand_id_filter, user_id, doc_type_filter, category_filter, limit_count)
  -> rows with a `rank` column
"""
