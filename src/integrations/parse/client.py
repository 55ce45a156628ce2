"""
Parse Server REST client.

Thin async wrapper over the Parse REST API using httpx:
- Classes: query, get, create, update, delete
- Files: upload
- Users: signup, login, logout, me, delete

All failures are raised as ParseError subclasses. Nothing is retried here.
"""

import json
import logging
from typing import Any, Optional

import httpx

from src.integrations.parse.exceptions import (
    ParseConnectionError,
    ParseError,
    error_for_response,
)

logger = logging.getLogger(__name__)

# Parse Server caps a single query page at this size by default
QUERY_PAGE_SIZE = 100


class ParseClient:
    """
    Async client for one Parse application.

    Usage:
        client = ParseClient("https://parse.example.com/parse", app_id, rest_key)
        results = await client.query("FamilyMember", {"userId": user_id}, session_token=token)
        await client.aclose()
    """

    def __init__(
        self,
        server_url: str,
        application_id: str,
        rest_api_key: str,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            server_url: Parse Server mount URL (including the mount path)
            application_id: X-Parse-Application-Id
            rest_api_key: X-Parse-REST-API-Key
            timeout: Transport timeout per request (seconds)
            transport: Optional httpx transport (for tests)
        """
        self._http = httpx.AsyncClient(
            base_url=server_url.rstrip("/") + "/",
            headers={
                "X-Parse-Application-Id": application_id,
                "X-Parse-REST-API-Key": rest_api_key,
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        session_token: Optional[str] = None,
        json_body: Optional[dict] = None,
        params: Optional[dict] = None,
        content: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> dict:
        """
        Send a request and decode the JSON response.

        Raises:
            ParseConnectionError: Transport failure
            ParseError: Error response (most specific subclass)
        """
        headers = {}
        if session_token:
            headers["X-Parse-Session-Token"] = session_token
        if content_type:
            headers["Content-Type"] = content_type

        try:
            response = await self._http.request(
                method,
                path,
                headers=headers,
                json=json_body,
                params=params,
                content=content,
            )
        except httpx.HTTPError as e:
            raise ParseConnectionError(
                f"Could not reach Parse Server: {e}",
                original_error=e,
            ) from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}

        if response.is_error:
            error = error_for_response(response.status_code, body if isinstance(body, dict) else {})
            logger.debug(f"{method} {path} failed: HTTP {response.status_code} code={error.code}")
            raise error

        if not isinstance(body, dict):
            raise ParseError(f"Unexpected response from {method} {path}", status_code=response.status_code)
        return body

    # =========================================================================
    # Classes
    # =========================================================================

    async def query(
        self,
        class_name: str,
        where: dict[str, Any],
        session_token: Optional[str] = None,
        order: str = "createdAt",
    ) -> list[dict]:
        """
        Run a query and return every matching object.

        Follows pages of QUERY_PAGE_SIZE until a short page.
        """
        results: list[dict] = []
        skip = 0
        while True:
            page = await self.request(
                "GET",
                f"classes/{class_name}",
                session_token=session_token,
                params={
                    "where": json.dumps(where),
                    "order": order,
                    "limit": QUERY_PAGE_SIZE,
                    "skip": skip,
                },
            )
            items = page.get("results", [])
            results.extend(items)
            if len(items) < QUERY_PAGE_SIZE:
                return results
            skip += QUERY_PAGE_SIZE

    async def get_object(
        self,
        class_name: str,
        object_id: str,
        session_token: Optional[str] = None,
    ) -> dict:
        return await self.request(
            "GET", f"classes/{class_name}/{object_id}", session_token=session_token
        )

    async def create_object(
        self,
        class_name: str,
        body: dict,
        session_token: Optional[str] = None,
    ) -> dict:
        """Create an object. Returns {"objectId", "createdAt"}."""
        return await self.request(
            "POST", f"classes/{class_name}", session_token=session_token, json_body=body
        )

    async def update_object(
        self,
        class_name: str,
        object_id: str,
        body: dict,
        session_token: Optional[str] = None,
    ) -> dict:
        """Update an object. Returns {"updatedAt"}."""
        return await self.request(
            "PUT",
            f"classes/{class_name}/{object_id}",
            session_token=session_token,
            json_body=body,
        )

    async def delete_object(
        self,
        class_name: str,
        object_id: str,
        session_token: Optional[str] = None,
    ) -> None:
        await self.request(
            "DELETE", f"classes/{class_name}/{object_id}", session_token=session_token
        )

    # =========================================================================
    # Files
    # =========================================================================

    async def upload_file(
        self,
        name: str,
        data: bytes,
        content_type: str,
        session_token: Optional[str] = None,
    ) -> dict:
        """Upload a file. Returns {"name", "url"}; the server prefixes the name."""
        return await self.request(
            "POST",
            f"files/{name}",
            session_token=session_token,
            content=data,
            content_type=content_type,
        )

    # =========================================================================
    # Users
    # =========================================================================

    async def signup(self, body: dict) -> dict:
        """Create a user. Returns {"objectId", "createdAt", "sessionToken"}."""
        return await self.request("POST", "users", json_body=body)

    async def login(self, username: str, password: str) -> dict:
        """Log in. Returns the user object including "sessionToken"."""
        return await self.request(
            "POST",
            "login",
            json_body={"username": username, "password": password},
        )

    async def logout(self, session_token: str) -> None:
        await self.request("POST", "logout", session_token=session_token)

    async def me(self, session_token: str) -> dict:
        return await self.request("GET", "users/me", session_token=session_token)

    async def delete_user(self, user_id: str, session_token: str) -> None:
        await self.request("DELETE", f"users/{user_id}", session_token=session_token)
