"""
Custom prompt table schema (Supabase/PostgreSQL)

Table: custom_prompts
- id: UUID (Primary Key)
- user_id: UUID (owner)
- name: VARCHAR
- description: TEXT (nullable)
- prompt_type: VARCHAR ('design_email' | 'letter_email' | 'flow_email')
- system_prompt: TEXT
- user_prompt: TEXT (nullable)
- is_active: BOOLEAN (at most one active prompt per user and prompt_type)
- created_at / updated_at: TIMESTAMP
"""
