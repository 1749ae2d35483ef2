"""
Notification table schema (Supabase/PostgreSQL)

Table: notifications
- id: UUID (Primary Key)
- user_id: UUID (recipient, Foreign Key -> auth.users.id)
- type: VARCHAR (comment_added, conversation_shared, job_completed, job_failed, ...)
- title: VARCHAR
- message: TEXT
- link: VARCHAR (nullable, app-relative URL)
- metadata: JSONB (nullable)
- is_read: BOOLEAN (default false)
- created_at: TIMESTAMP
"""
