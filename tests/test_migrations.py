"""
Checks on the SQL functions the repositories call through RPC.
"""
import re
from pathlib import Path

import pytest

MIGRATIONS = Path(__file__).resolve().parent.parent / "supabase" / "migrations"


@pytest.fixture(scope="module")
def schema_sql():
    return "\n".join(path.read_text() for path in sorted(MIGRATIONS.glob("*.sql")))


def function_body(sql, name):
    match = re.search(rf"create or replace function public\.{name}\(.*?\n\$\$;", sql, re.S)
    assert match, f"function {name} is not defined"
    return match.group(0)


def test_replace_user_role_locks_before_deleting(schema_sql):
    body = function_body(schema_sql, "replace_user_role")
    lock = body.index("pg_advisory_xact_lock(")
    assert lock < body.index("delete from public.user_roles") < body.index("insert into public.user_roles")
    assert "p_user_id" in body[lock:body.index(";", lock)]
    assert "p_company_id" in body[lock:body.index(";", lock)]


@pytest.mark.parametrize("name,grouping", [
    ("audit_action_counts", "group by l.action_type"),
    ("audit_daily_counts", "group by 1"),
    ("audit_top_users", "group by l.user_id"),
])
def test_aggregations_group_in_the_store(schema_sql, name, grouping):
    body = function_body(schema_sql, name)
    assert "p_company_id" in body
    assert grouping in body


def test_top_users_is_limited(schema_sql):
    assert "limit p_limit" in function_body(schema_sql, "audit_top_users")
