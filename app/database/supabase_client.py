import logging

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from app.config.settings import settings
from app.core.errors import StoreError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
INVALID_TEXT_REPRESENTATION = "22P02"


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use for seeding and admin RPCs."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def execute(query, context: str):
    """Run a PostgREST request, wrapping transport and API failures in StoreError."""
    try:
        return query.execute()
    except APIError as e:
        if e.code == INVALID_TEXT_REPRESENTATION:
            logger.info(f"Malformed value during {context}: {e.message}")
        else:
            logger.error(f"Supabase error during {context}: {e.code} {e.message}")
        raise StoreError(context, code=e.code, detail=e.message) from e
    except httpx.HTTPError as e:
        logger.error(f"Supabase transport error during {context}: {e}")
        raise StoreError(context, detail=str(e)) from e


def fetch_rows(query, context: str) -> list:
    """Rows of a lookup; a malformed id (e.g. not a uuid) matches nothing."""
    try:
        result = execute(query, context)
    except StoreError as e:
        if e.code == INVALID_TEXT_REPRESENTATION:
            return []
        raise
    return result.data or []
