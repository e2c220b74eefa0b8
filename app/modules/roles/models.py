# Supabase tables: permissions, roles, role_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in repository.py
# DDL and the atomic RPC functions live in supabase/migrations/

"""
Expected Supabase table structure:

permissions:
- id: uuid (primary key)
- code: text (not null, unique) - "<category>.<action>", e.g. "cages.delete"
- description: text (nullable)
- created_at: timestamp (default: now())

roles:
- id: uuid (primary key)
- name: text (not null, unique) - e.g. "Administrator", "Operator"
- description: text (nullable)
- created_at: timestamp (default: now())

role_permissions:
- role_id: uuid (foreign key to roles.id, not null, on delete cascade)
- permission_id: uuid (foreign key to permissions.id, not null, on delete restrict)
- primary key (role_id, permission_id)

RPC functions (each runs in a single transaction):
- create_role_with_permissions(p_name text, p_description text, p_permission_ids uuid[]) returns setof roles
- replace_role_permissions(p_role_id uuid, p_permission_ids uuid[]) returns void
"""
