"""
Custom mode table schema (Supabase/PostgreSQL)

Table: custom_modes
- id: UUID (Primary Key)
- user_id: UUID (owner)
- name: VARCHAR(100)
- description: TEXT (nullable)
- icon: VARCHAR (nullable)
- color: VARCHAR (nullable)
- system_prompt: TEXT
- is_active: BOOLEAN
- is_default: BOOLEAN (seeded modes; read-only for users)
- sort_order: INTEGER
- created_at / updated_at: TIMESTAMP
"""
