"""
Message job table schema (Supabase/PostgreSQL)

Table: message_jobs
- id: UUID (Primary Key)
- message_id: UUID (assistant message the job fills in)
- conversation_id: UUID
- user_id: UUID
- status: VARCHAR ('pending' | 'processing' | 'completed' | 'failed' | 'cancelled')
- priority: INTEGER (higher runs first)
- payload: JSONB ({message, mode, specialist, model, user_message_id})
- retry_count: INTEGER
- max_retries: INTEGER
- error: TEXT (nullable)
- created_at: TIMESTAMP
- started_at: TIMESTAMP (nullable)
- completed_at: TIMESTAMP (nullable)

Claiming a job is a conditional update on (id, status); an empty result
means another worker got there first.
"""
