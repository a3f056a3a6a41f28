"""Remote notes API implementation of the storage collaborator.

Talks to the hosted SwiftNotes REST API with ``httpx``.  Every transport
error, non-2xx status, or ``{"success": false}`` body surfaces as
:class:`~backend.content.errors.StorageFailure`; nothing is retried here.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx

from backend.config import settings
from backend.content.errors import StorageFailure
from backend.db.models import ISPTask, Note, SectionDraft


class HttpNoteStore:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token if token is not None else settings.api_token
        self.timeout = timeout if timeout is not None else settings.request_timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                headers=self._headers(),
                timeout=self.timeout,
                follow_redirects=True,
            ) as client:
                response = await client.request(method, url, json=json)
                response.raise_for_status()
                payload = response.json() if response.content else {}
        except httpx.HTTPStatusError as exc:
            raise StorageFailure(
                f"{method} {path} returned HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageFailure(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise StorageFailure(f"{method} {path} returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise StorageFailure(f"{method} {path} returned an unexpected body")
        if payload.get("success") is False:
            raise StorageFailure(payload.get("error") or f"{method} {path} was rejected")
        return payload

    @staticmethod
    def _note_from(payload: dict[str, Any], path: str) -> Note:
        raw = payload.get("note")
        if not isinstance(raw, dict):
            raise StorageFailure(f"{path} response has no note")
        try:
            return Note.from_dict(raw)
        except (TypeError, ValueError, OverflowError) as exc:
            raise StorageFailure(f"{path} returned a malformed note: {exc}") from exc

    # ------------------------------------------------------------------
    # NoteStore / TaskSource
    # ------------------------------------------------------------------
    async def get_note(self, note_id: str) -> Note:
        path = f"/notes/{note_id}"
        return self._note_from(await self._request("GET", path), path)

    async def save_note(self, title: str, sections: Sequence[SectionDraft]) -> Note:
        path = "/ai/save-note"
        body = {"title": title, "sections": [s.to_dict() for s in sections]}
        return self._note_from(await self._request("POST", path, json=body), path)

    async def update_section(
        self,
        section_id: str,
        generated_content: str,
        is_edited: bool,
    ) -> None:
        await self._request(
            "PUT",
            f"/notes/sections/{section_id}",
            json={"generated_content": generated_content, "is_edited": is_edited},
        )

    async def get_tasks(self) -> list[ISPTask]:
        payload = await self._request("GET", "/isp-tasks")
        raw_tasks = payload.get("tasks") or []
        return [ISPTask.from_dict(t) for t in raw_tasks if isinstance(t, dict)]
