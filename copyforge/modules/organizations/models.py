# Supabase tables: organizations, organization_members, organization_invites
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

organizations:
- id: uuid (primary key)
- name: text (not null)
- slug: text (unique, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

organization_members:
- id: uuid (primary key)
- organization_id: uuid (foreign key to organizations.id, not null)
- user_id: uuid (foreign key to auth.users.id, not null)
- role: text (not null) - values: admin, brand_manager, member
- invited_by: uuid (nullable)
- joined_at: timestamp (nullable)
- unique constraint on (organization_id, user_id)

organization_invites:
- id: uuid (primary key)
- organization_id: uuid (foreign key to organizations.id, not null)
- email: text (not null)
- role: text (not null)
- invite_token: text (unique, not null)
- invited_by: uuid (not null)
- expires_at: timestamp (not null)
- used_at: timestamp (nullable)
- created_at: timestamp (default: now())

profiles:
- user_id: uuid (primary key, foreign key to auth.users.id)
- email: text
- full_name: text (nullable)
"""
