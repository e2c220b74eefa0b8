# Supabase tables: user_roles (+ profiles, companies for existence checks)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in repository.py

"""
Expected Supabase table structure:

user_roles:
- user_id: uuid (foreign key to profiles.id, not null)
- role_id: uuid (foreign key to roles.id, not null)
- company_id: uuid (foreign key to companies.id, not null)
- assigned_by: uuid (nullable) - user who made the assignment
- assigned_at: timestamp (default: now())
- unique constraint on (user_id, role_id, company_id)

profiles (maintained by the identity provider):
- id: uuid (primary key, references auth.users)
- email: text
- full_name: text (nullable)

companies:
- id: uuid (primary key)
- name: text

RPC functions (single transaction):
- replace_user_role(p_user_id uuid, p_role_id uuid, p_company_id uuid, p_assigned_by uuid) returns void
"""
