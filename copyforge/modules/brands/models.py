"""
Brand table schema (Supabase/PostgreSQL)

Table: brands
- id: UUID (Primary Key)
- organization_id: UUID (Foreign Key -> organizations.id)
- user_id: UUID (creator, Foreign Key -> auth.users.id)
- name: VARCHAR
- brand_details: TEXT (nullable)
- brand_guidelines: TEXT (nullable)
- copywriting_style_guide: TEXT (nullable)
- brand_voice: JSONB (nullable) - see BrandVoice
- website_url: VARCHAR (nullable)
- logo_url: VARCHAR (nullable)
- created_at: TIMESTAMP
- updated_at: TIMESTAMP

Visibility: a brand is visible to every member of its organization.
Writes require the admin or brand_manager role.
"""
