"""
Artifact table schemas (Supabase/PostgreSQL)

Table: artifacts
- id: UUID (Primary Key)
- conversation_id: UUID (Foreign Key -> conversations.id)
- message_id: UUID (nullable, message that produced it)
- brand_id: UUID (nullable, Foreign Key -> brands.id)
- user_id: UUID (owner)
- title: VARCHAR
- kind: VARCHAR (email, flow, campaign, subject_lines, template, content_brief,
  email_brief, calendar, markdown, spreadsheet, code, checklist)
- content: TEXT (markdown body)
- version_a / version_b / version_c: JSONB (nullable; subject_line, preview_text, content, ...)
- selected_version: VARCHAR ('A' | 'B' | 'C', default 'A')
- share_token: VARCHAR (nullable, unique)
- metadata: JSONB (kind-specific fields)
- created_at / updated_at: TIMESTAMP

Table: artifact_comments
- id: UUID (Primary Key)
- artifact_id: UUID (Foreign Key -> artifacts.id, cascade)
- user_id: UUID (author)
- content: TEXT
- version_key: VARCHAR (nullable, 'A' | 'B' | 'C')
- section_index: INTEGER (nullable)
- resolved: BOOLEAN (default false)
- created_at / updated_at: TIMESTAMP
"""
