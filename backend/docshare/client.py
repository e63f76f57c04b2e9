"""Thin async wrapper around the DocShare REST API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from docshare.core.exceptions import NetworkError, ServerRejectionError

logger = logging.getLogger("docshare")


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("message", "error"):
            if data.get(key):
                return str(data[key])
        detail = data.get("detail")
        if isinstance(detail, list):
            return "; ".join(str(item.get("msg", item)) for item in detail if item)
        if detail:
            return str(detail)
    return response.text or response.reason_phrase or f"HTTP {response.status_code}"


class DocShareClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self.token = token

    async def __aenter__(self) -> "DocShareClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError("No response from server! Please try again later.") from e
        if response.is_error:
            raise ServerRejectionError(_error_message(response), response.status_code)
        return response

    async def _json(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        response = await self._request(method, path, **kwargs)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ServerRejectionError("Server returned an invalid response.", response.status_code) from e

    # auth

    async def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        return await self._json("POST", "/api/auth/register", json={"name": name, "email": email, "password": password})

    async def login(self, email: str, password: str) -> str:
        data = await self._json("POST", "/api/auth/token", data={"username": email, "password": password})
        self.token = data["access_token"]
        return self.token

    async def forgot_password(self, email: str) -> str:
        data = await self._json("POST", "/api/auth/password/forgot", json={"email": email})
        return data.get("url", "")

    async def reset_password(self, email: str, password: str, token: str) -> dict[str, Any]:
        return await self._json(
            "POST", "/api/auth/password/reset", json={"email": email, "password": password, "token": token}
        )

    async def change_password(self, email: str, current_password: str, new_password: str) -> dict[str, Any]:
        return await self._json(
            "POST",
            "/api/profile/changePassword",
            json={"email": email, "currentPassword": current_password, "newPassword": new_password},
        )

    # documents

    async def upload_document(self, file_name: str, content: bytes, content_type: str) -> dict[str, Any]:
        data = await self._json("POST", "/api/documents/upload", files={"file": (file_name, content, content_type)})
        document = data.get("document")
        if not document:
            raise ServerRejectionError("Server responded with an error.")
        return document

    async def list_documents(self) -> list[dict[str, Any]]:
        data = await self._json("GET", "/api/documents/list")
        return data.get("documents", [])

    async def get_document(self, document_id: str) -> dict[str, Any]:
        data = await self._json("GET", f"/api/documents/{document_id}")
        return data["document"]

    async def delete_document(self, document_id: str) -> None:
        await self._request("DELETE", f"/api/documents/{document_id}")

    async def list_links(self, document_id: str) -> list[dict[str, Any]]:
        data = await self._json("GET", f"/api/documents/{document_id}/links")
        return data.get("links", [])

    async def list_visitors(self, document_id: str) -> list[dict[str, Any]]:
        data = await self._json("GET", f"/api/documents/{document_id}/visitors")
        return data.get("visitors", [])

    async def list_contacts(self) -> list[dict[str, Any]]:
        data = await self._json("GET", "/api/contacts")
        return data.get("contacts", [])

    # links

    async def create_link(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._json("POST", "/api/links", json=payload)
        link = data.get("link") or {}
        if not link.get("linkUrl"):
            raise ServerRejectionError("No link returned by server.")
        return link

    async def delete_link(self, document_id: str, link_id: str) -> None:
        await self._request("DELETE", f"/api/documents/{document_id}/links/{link_id}")

    async def get_link_requirements(self, link_id: str) -> dict[str, Any]:
        return await self._json("GET", f"/api/links/{link_id}")

    async def request_shared_access(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._json("POST", "/api/links/shared_access", json=payload)
        if not data.get("data"):
            raise ServerRejectionError(data.get("message") or "Access to the document was refused.")
        return data["data"]

    async def download(self, download_url: str) -> bytes:
        response = await self._request("GET", download_url)
        return response.content
