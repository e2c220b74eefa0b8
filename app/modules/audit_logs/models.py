# Supabase table: audit_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in repository.py

"""
Expected Supabase table structure:

audit_logs:
- id: uuid (primary key, default gen_random_uuid())
- timestamp: timestamptz (not null, default now())
- user_id: uuid (nullable, foreign key to profiles.id)
- company_id: uuid (not null, foreign key to companies.id)
- action_type: text (not null, check in ('create', 'update', 'delete'))
- table_name: text (not null)
- record_id: text (not null)
- previous_values: jsonb (not null, default '{}')
- new_values: jsonb (not null, default '{}')
- indexes on (company_id, timestamp desc) and (table_name, record_id, timestamp desc)

The table is append-only: the application role is granted INSERT and SELECT
only, so rows are never updated or deleted once written.

Aggregation functions (called via supabase.rpc, grouped in Postgres):
- audit_action_counts(p_company_id, p_since, p_until) -> (action_type, count)
- audit_daily_counts(p_company_id, p_since, p_until) -> (day, count), UTC days
- audit_top_users(p_company_id, p_limit) -> (user_id, count), largest first
"""
