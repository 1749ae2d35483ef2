"""
Saved prompt table schema (Supabase/PostgreSQL)

Table: saved_prompts
- id: UUID (Primary Key)
- user_id: UUID (owner)
- name: VARCHAR
- description: TEXT (nullable)
- icon: VARCHAR (emoji)
- prompt: TEXT
- slash_command: VARCHAR (nullable; lowercase, no leading '/', no spaces; unique per user)
- modes: TEXT[] (conversation modes the prompt is offered in)
- is_active: BOOLEAN
- is_default: BOOLEAN (seeded on first list; cannot be deleted)
- sort_order: INTEGER
- created_at / updated_at: TIMESTAMP
"""
