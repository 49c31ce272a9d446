# src/ytcli/client.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_ISSUE_FIELDS = (
    "id,idReadable,summary,description,created,updated,resolved,"
    "project(id,shortName,name),"
    "reporter(login,name),"
    "assignee(login,name),"
    "customFields(name,value(name,id))"
)
DEFAULT_COMMENT_FIELDS = "id,text,author(login,name),created,updated"
DEFAULT_PROJECT_FIELDS = "id,shortName,name"
DEFAULT_USER_FIELDS = "id,login,name,email"

DEFAULT_TIMEOUT = 30


class YouTrackAPIError(RuntimeError):
    """
    The one error kind raised by the client. The message always reads
    "YouTrack API error <status|unknown>: <message>".
    """

    def __init__(self, status_code: Optional[int], message: str) -> None:
        self.status_code = status_code
        self.detail = message
        super().__init__(f"YouTrack API error {status_code if status_code is not None else 'unknown'}: {message}")


def normalize_base_url(base_url: str) -> str:
    return re.sub(r"/+$", "", base_url)


def _escape(issue_id: str) -> str:
    return quote(str(issue_id), safe="")


def _error_message(resp: Optional[requests.Response], fallback: str) -> str:
    if resp is not None:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            for key in ("error_description", "error", "message"):
                if data.get(key) is not None:
                    return str(data[key])
    return fallback


class YouTrackClient:
    """Thin wrapper around the YouTrack REST API (Bearer token auth)."""

    def __init__(self, base_url: str, token: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = normalize_base_url(base_url)
        self.api_url = f"{self.base_url}/api/"
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    @classmethod
    def from_config(cls, config: Any, **kwargs: Any) -> "YouTrackClient":
        return cls(config.base_url, config.token, **kwargs)

    # -----------------------------
    # HTTP helpers
    # -----------------------------
    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = self.api_url + path
        logger.debug("%s %s params=%s", method, url, params)
        try:
            resp = self._session.request(method, url, params=params, json=body, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise YouTrackAPIError(status, _error_message(e.response, str(e))) from e
        except requests.RequestException as e:
            raise YouTrackAPIError(None, _error_message(getattr(e, "response", None), str(e))) from e

        logger.debug("%s %s -> %s", method, url, resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise YouTrackAPIError(resp.status_code, f"Invalid JSON in response: {e}") from e

    def _get_list(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = self._request("GET", path, params=params)
        if not isinstance(data, list):
            raise YouTrackAPIError(None, f"Unexpected response for {path}: expected a JSON array")
        return data

    def _get_object(self, method: str, path: str, params: Dict[str, Any],
                    body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = self._request(method, path, params=params, body=body)
        if not isinstance(data, dict):
            raise YouTrackAPIError(None, f"Unexpected response for {path}: expected a JSON object")
        return data

    # -----------------------------
    # Issues
    # -----------------------------
    def search_issues(
        self,
        query: str,
        fields: Optional[str] = None,
        top: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run a YouTrack query and return one page of issues.
        `top`/`skip` are forwarded as `$top`/`$skip`; no further pages are fetched.
        """
        return self._get_list("issues", {
            "query": query,
            "fields": fields or DEFAULT_ISSUE_FIELDS,
            "$top": 50 if top is None else top,
            "$skip": 0 if skip is None else skip,
        })

    def get_issue(self, issue_id: str, fields: Optional[str] = None) -> Dict[str, Any]:
        return self._get_object("GET", f"issues/{_escape(issue_id)}", {"fields": fields or DEFAULT_ISSUE_FIELDS})

    def create_issue(self, project: str, summary: str, description: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"project": {"id": project}, "summary": summary}
        if description is not None:
            body["description"] = description
        return self._get_object("POST", "issues", {"fields": DEFAULT_ISSUE_FIELDS}, body)

    def update_issue(
        self,
        issue_id: str,
        summary: Optional[str] = None,
        description: Optional[str] = None,
        custom_fields: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Update an issue. Only the arguments that are given end up in the body.

        Each custom field is a ``{"name": ..., "value": ...}`` dict; string
        values are sent as enum references (``{"name": value}``), anything
        else is passed through unchanged.
        """
        body: Dict[str, Any] = {}
        if summary is not None:
            body["summary"] = summary
        if description is not None:
            body["description"] = description
        if custom_fields:
            body["customFields"] = [
                {
                    "name": cf["name"],
                    "value": {"name": cf["value"]} if isinstance(cf["value"], str) else cf["value"],
                    "$type": "SingleEnumIssueCustomField",
                }
                for cf in custom_fields
            ]
        return self._get_object("POST", f"issues/{_escape(issue_id)}", {"fields": DEFAULT_ISSUE_FIELDS}, body)

    # -----------------------------
    # Comments
    # -----------------------------
    def get_comments(self, issue_id: str, fields: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._get_list(f"issues/{_escape(issue_id)}/comments", {"fields": fields or DEFAULT_COMMENT_FIELDS})

    def add_comment(self, issue_id: str, text: str) -> Dict[str, Any]:
        return self._get_object(
            "POST", f"issues/{_escape(issue_id)}/comments", {"fields": DEFAULT_COMMENT_FIELDS}, {"text": text}
        )

    # -----------------------------
    # Projects / users
    # -----------------------------
    def list_projects(self, fields: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._get_list("admin/projects", {"fields": fields or DEFAULT_PROJECT_FIELDS})

    def get_current_user(self, fields: Optional[str] = None) -> Dict[str, Any]:
        return self._get_object("GET", "users/me", {"fields": fields or DEFAULT_USER_FIELDS})
