"""
Flow table schemas (Supabase/PostgreSQL)

Table: flow_outlines
- id: UUID (Primary Key)
- conversation_id: UUID (Foreign Key -> conversations.id, cascade; the flow conversation)
- flow_type: VARCHAR (welcome, abandoned_cart, post_purchase, winback, browse_abandonment, custom)
- outline_data: JSONB (flow_name, goal, target_audience, emails[])
- approved: BOOLEAN
- approved_at: TIMESTAMP
- email_count: INTEGER
- created_at: TIMESTAMP

Flow and calendar children are ordinary conversations rows with
parent_conversation_id set to the flow or calendar conversation and
flow_sequence_order giving their position. Calendar children carry
metadata.email_brief_artifact_id; the brief artifact gets
metadata.email_conversation_id in return.
"""
