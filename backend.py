"""
Backend-klient mot Supabase (PostgREST) för rutter och loppresultat
"""

import logging
import requests
import streamlit as st
from typing import Any, Dict, List, Optional

from config import COMPLETIONS_TABLE, REQUEST_TIMEOUT, ROUTES_TABLE
from models import GeneratedRoute, RaceCompletion

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Backend avvisade anropet eller gick inte att nå"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SupabaseBackend:
    """Tunn klient mot Supabase REST-API"""

    def __init__(
        self,
        url: str,
        key: str,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.session = session or requests.Session()
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {access_token or key}",
            "Content-Type": "application/json"
        }

    @classmethod
    def from_secrets(cls, access_token: Optional[str] = None) -> Optional["SupabaseBackend"]:
        """Skapa klient från Streamlit secrets, None om nycklar saknas"""
        if "SUPABASE_URL" not in st.secrets or "SUPABASE_KEY" not in st.secrets:
            return None
        return cls(st.secrets["SUPABASE_URL"], st.secrets["SUPABASE_KEY"], access_token)

    def _request(self, method: str, table: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{table}"
        headers = dict(self.headers)
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self.session.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"Kunde inte nå backend: {e}") from e

        if not 200 <= response.status_code < 300:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise BackendError(f"{table}: {message}", response.status_code)
        return response

    def insert_routes(self, routes: List[GeneratedRoute], owner_id: str) -> List[Dict[str, Any]]:
        """
        Spara genererade rutter i en enda batch

        Args:
            routes: Genererade rutter
            owner_id: Användar-id som äger rutterna

        Returns:
            De skapade raderna
        """
        if not routes:
            return []
        rows = [route.to_row(owner_id) for route in routes]
        response = self._request(
            "POST", ROUTES_TABLE, json=rows,
            headers={"Prefer": "return=representation"}
        )
        logger.info(f"Sparade {len(rows)} rutter för {owner_id}")
        return response.json()

    def insert_completion(self, completion: RaceCompletion) -> None:
        self._request("POST", COMPLETIONS_TABLE, json=completion.to_row())
        logger.info(f"Sparade lopp {completion.route_id} på {completion.completion_time} s")

    def fetch_route(self, route_id: str) -> Dict[str, Any]:
        """Hämta en rutt med skaparens visningsnamn"""
        response = self._request(
            "GET", ROUTES_TABLE,
            params={"id": f"eq.{route_id}", "select": "*,profiles:user_id(display_name)"},
            headers={"Accept": "application/vnd.pgrst.object+json"}
        )
        return response.json()

    def fetch_leaderboard(self, route_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Snabbaste tiderna på en rutt"""
        response = self._request(
            "GET", COMPLETIONS_TABLE,
            params={
                "route_id": f"eq.{route_id}",
                "select": "user_id,completion_time,average_speed,max_speed,completion_date",
                "order": "completion_time.asc",
                "limit": limit
            }
        )
        return response.json()
