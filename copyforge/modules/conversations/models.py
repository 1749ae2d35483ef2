"""
Conversation table schemas (Supabase/PostgreSQL)

Table: conversations
- id: UUID (Primary Key)
- user_id: UUID (owner, Foreign Key -> auth.users.id)
- brand_id: UUID (nullable, Foreign Key -> brands.id)
- title: VARCHAR (nullable, generated from the first user message when empty)
- mode: VARCHAR (nullable: email_copy, planning, flow, assistant, calendar_planner, orchestrator)
- custom_mode_id: UUID (nullable, Foreign Key -> custom_modes.id)
- is_starred: BOOLEAN (default false)
- is_pinned / is_archived: BOOLEAN (default false)
- parent_conversation_id: UUID (nullable, flow or calendar conversation this email belongs to)
- is_flow: BOOLEAN (default false)
- flow_type: VARCHAR (nullable)
- flow_sequence_order: INTEGER (nullable)
- share_token: VARCHAR (nullable, unique)
- visibility: VARCHAR ('private' | 'team')
- metadata: JSONB (nullable)
- created_at / updated_at: TIMESTAMP

Table: messages
- id: UUID (Primary Key)
- conversation_id: UUID (Foreign Key -> conversations.id, cascade)
- role: VARCHAR ('user' | 'assistant' | 'system')
- content: TEXT
- model_id: VARCHAR (nullable)
- metadata: JSONB (nullable)
- status: VARCHAR (nullable; mirrors the message_jobs status for queued replies)
- created_at: TIMESTAMP

Table: conversation_comments
- id: UUID (Primary Key)
- conversation_id: UUID (Foreign Key -> conversations.id, cascade)
- user_id: UUID (author)
- message_id: UUID (nullable, comment anchored to a message)
- content: TEXT
- resolved: BOOLEAN (default false)
- created_at: TIMESTAMP
"""
