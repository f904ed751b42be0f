"""HTTP consumer of the evaluation-forms API.

GET responses are kept in a read-through ``QueryCache`` keyed by request
signature. Every mutation explicitly invalidates the cached reads it can
affect; nothing else ever evicts entries early. Failed calls are not
retried.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from evalforms.core.config import settings
from evalforms.client.query_cache import QueryCache, build_query_cache, request_signature

_LOG = logging.getLogger("evalforms.client")

GENERIC_ERROR_MESSAGE = "Request failed"
SUBMISSIONS_PATH = "/submissions"


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str, details: list[Any] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = list(details or [])

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = None
        error: dict[str, Any] = {}
        message = ""
        if isinstance(body, dict):
            if isinstance(body.get("error"), dict):
                error = body["error"]
            message = str(error.get("message") or body.get("message") or body.get("detail") or "").strip()
        message = message or f"{GENERIC_ERROR_MESSAGE} ({response.status_code})"
        details = error.get("details") if isinstance(error.get("details"), list) else []
        if details:
            parts = []
            for item in details:
                if not isinstance(item, Mapping):
                    continue
                path = item.get("path")
                path_text = ".".join(str(part) for part in path) if isinstance(path, (list, tuple)) and path else "unknown"
                parts.append(f"{path_text}: {item.get('message')}")
            if parts:
                message = f"{message} ({', '.join(parts)})"
        return cls(response.status_code, str(error.get("code") or "http_error"), message, details)


class EvaluationFormsClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        cache: QueryCache | None = None,
        http_client: httpx.Client | None = None,
        timeout: float | None = None,
        cache_ttl_seconds: int | None = None,
        min_search_length: int | None = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_http = http_client is None
        self.http = http_client or httpx.Client(
            base_url=str(base_url or settings.API_BASE_URL).rstrip("/"),
            timeout=timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS,
        )
        self.http.headers.update(headers)
        self.cache = cache if cache is not None else build_query_cache()
        self.cache_ttl_seconds = int(cache_ttl_seconds or settings.CLIENT_CACHE_TTL_SECONDS)
        self.min_search_length = int(
            min_search_length if min_search_length is not None else settings.STUDENT_SEARCH_MIN_QUERY
        )

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "EvaluationFormsClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, *, params: Mapping[str, Any] | None = None, json: Any = None) -> Any:
        clean_params = {key: value for key, value in (params or {}).items() if value is not None and value != ""}
        try:
            response = self.http.request(method, path, params=clean_params or None, json=json)
        except httpx.HTTPError as exc:
            _LOG.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(0, "network_error", f"{GENERIC_ERROR_MESSAGE}: {exc}") from exc
        if response.status_code >= 400:
            error = ApiError.from_response(response)
            _LOG.info("%s %s -> %s %s", method, path, response.status_code, error.message)
            raise error
        if not response.content:
            return None
        return response.json()

    def _cached_get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        key = request_signature(path, params)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        data = self._request("GET", path, params=params)
        if data is not None:
            self.cache.set(key, data, ttl_seconds=self.cache_ttl_seconds)
        return data

    def invalidate_submissions(self, submission_id: str | None = None) -> None:
        removed = self.cache.invalidate(SUBMISSIONS_PATH)
        _LOG.debug("Invalidated %s cached submission queries (submission=%s)", removed, submission_id)

    # Templates

    def list_templates(self, status: str | None = "active") -> list[dict[str, Any]]:
        return self._cached_get("/templates", {"status": status}) or []

    def get_template(self, template_id: str) -> dict[str, Any]:
        return self._cached_get(f"/templates/{template_id}")

    # Students

    def search_students(self, query: str, limit: int | None = None) -> list[dict[str, Any]]:
        text = str(query or "").strip()
        if len(text) < self.min_search_length:
            return []
        return self._cached_get("/students/search", {"q": text, "limit": limit}) or []

    def get_student_profile(self, student_id: str) -> dict[str, Any]:
        return self._cached_get(f"/students/{student_id}/profile")

    # Submissions

    def list_submissions(
        self,
        *,
        status: str | None = None,
        page: int = 1,
        limit: int | None = None,
        form_template_id: str | None = None,
        submitted_by: str | None = None,
    ) -> dict[str, Any]:
        params = {
            "status": status,
            "page": page,
            "limit": limit,
            "form_template_id": form_template_id,
            "submitted_by": submitted_by,
        }
        return self._cached_get(SUBMISSIONS_PATH, params)

    def get_submission(self, submission_id: str) -> dict[str, Any]:
        return self._cached_get(f"{SUBMISSIONS_PATH}/{submission_id}")

    def create_submission(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        data = self._request("POST", SUBMISSIONS_PATH, json=dict(payload))
        self.invalidate_submissions(str((data or {}).get("id") or "") or None)
        return data

    def update_submission(self, submission_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        data = self._request("PUT", f"{SUBMISSIONS_PATH}/{submission_id}", json=dict(payload))
        self.invalidate_submissions(submission_id)
        return data

    def delete_submission(self, submission_id: str) -> dict[str, Any]:
        data = self._request("DELETE", f"{SUBMISSIONS_PATH}/{submission_id}")
        self.invalidate_submissions(submission_id)
        return data
