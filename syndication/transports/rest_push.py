"""Push transport for the hosted WordPress.com REST API."""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..errors import TransportError
from ..models import ContentItem, TransportKind
from .base import PushTransport, TransportOptions
from .settings import REST_API_BASE, RestPushSettings

logger = logging.getLogger(__name__)


def terms_csv(terms: List[str]) -> str:
    """Comma-joined term names, as the API expects."""
    return ",".join(terms)


class RestPushTransport(PushTransport):
    """Create, update and delete posts through the hosted REST API."""

    kind = TransportKind.REST_PUSH

    def __init__(
        self,
        endpoint_id: int,
        token: str,
        blog_id: str,
        api_base: str = REST_API_BASE,
        options: Optional[TransportOptions] = None,
    ) -> None:
        super().__init__(endpoint_id, options)
        self.token = token
        self.blog_id = blog_id
        self.api_base = api_base.rstrip("/") + "/"

    @classmethod
    def from_settings(
        cls, endpoint_id: int, settings: RestPushSettings, options: TransportOptions
    ) -> "RestPushTransport":
        return cls(endpoint_id, settings.token, settings.blog_id, settings.api_base, options)

    def _post_url(self, path: str) -> str:
        return f"{self.api_base}sites/{self.blog_id}/posts/{path}"

    def _request(
        self, method: str, url: str, data: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, Any], int]:
        """Send an authenticated request and decode the JSON body."""
        try:
            with self.client() as client:
                response = client.request(
                    method,
                    url,
                    data=data,
                    headers={"Authorization": f"Bearer {self.token}"},
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}", code="rest-request-failure")

        try:
            body = response.json()
        except ValueError:
            raise TransportError(
                f"Invalid JSON response from {url}",
                code="rest-invalid-response",
                status_code=response.status_code,
            )
        if not isinstance(body, dict):
            body = {}
        return body, response.status_code

    @staticmethod
    def _error_message(body: Dict[str, Any]) -> Optional[str]:
        if body.get("error"):
            return body.get("message") or str(body["error"])
        return None

    def prepare_payload(self, item: ContentItem) -> Dict[str, Any]:
        return {
            "title": item.title,
            "content": item.body,
            "excerpt": item.excerpt,
            "status": item.status,
            "date": item.published_at.isoformat() if item.published_at else "",
            "categories": terms_csv(item.terms.get("category", [])),
            "tags": terms_csv(item.terms.get("post_tag", [])),
        }

    def _push(self, payload: Dict[str, Any], item: ContentItem) -> int:
        body, status_code = self._request("POST", self._post_url("new/"), payload)
        error = self._error_message(body)
        if error or "ID" not in body:
            raise TransportError(
                error or "Response did not include a post ID",
                code="rest-push-new-fail",
                status_code=status_code,
            )
        return int(body["ID"])

    def _update(self, payload: Dict[str, Any], item: ContentItem, remote_id: int) -> None:
        body, status_code = self._request("POST", self._post_url(f"{remote_id}/"), payload)
        error = self._error_message(body)
        if error:
            raise TransportError(error, code="rest-push-edit-fail", status_code=status_code)

    def _delete(self, remote_id: int) -> bool:
        body, status_code = self._request("POST", self._post_url(f"{remote_id}/delete"))
        error = self._error_message(body)
        if error:
            raise TransportError(error, code="rest-push-delete-fail", status_code=status_code)
        return True

    def is_post_exists(self, remote_id: int) -> bool:
        body, status_code = self._request("GET", self._post_url(f"{remote_id}/"))
        error = self._error_message(body)
        if error is None:
            return True
        if status_code == 404 or body.get("error") == "unknown_post":
            return False
        # Any other error leaves existence unknown
        raise TransportError(error, code="rest-push-exists-fail", status_code=status_code)

    def test_connection(self) -> bool:
        try:
            body, _ = self._request("GET", f"{self.api_base}me/")
        except TransportError as e:
            logger.warning("Connection test for endpoint %d failed: %s", self.endpoint_id, e)
            return False
        return self._error_message(body) is None
