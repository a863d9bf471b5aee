"""XML-RPC transport for WordPress sites: push and pull."""

import logging
import re
import xmlrpc.client
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from xml.parsers.expat import ExpatError

import httpx

from ..errors import TransportError
from ..models import ContentItem, TransportKind
from .base import PullTransport, PushTransport, TransportOptions
from .settings import XmlRpcSettings

logger = logging.getLogger(__name__)

IGNORED_META_FIELDS = ("_edit_last", "_edit_lock", "_thumbnail_id")
SYNDICATION_META = re.compile(r"^_?syn", re.IGNORECASE)
SOURCE_URL_FIELD = "syn_source_url"
POST_NOT_FOUND_FAULT = "xmlrpc-fault-404"


def normalize_server_url(url: str) -> str:
    """Point a site URL at its xmlrpc.php."""
    url = url.rstrip("/")
    if "xmlrpc.php" not in url:
        url = f"{url}/xmlrpc.php"
    return url


def to_wire_date(value: datetime) -> xmlrpc.client.DateTime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return xmlrpc.client.DateTime(value.strftime("%Y%m%dT%H:%M:%S"))


class XmlRpcTransport(PushTransport, PullTransport):
    """Push to and pull from a WordPress site over XML-RPC."""

    kind = TransportKind.XMLRPC_PUSH

    def __init__(
        self,
        endpoint_id: int,
        url: str,
        username: str,
        password: str,
        blog_id: str = "1",
        pull_post_type: str = "post",
        pull_post_status: str = "publish",
        ignored_meta_fields: Optional[List[str]] = None,
        options: Optional[TransportOptions] = None,
    ) -> None:
        super().__init__(endpoint_id, options)
        self.url = normalize_server_url(url)
        self.username = username
        self.password = password
        self.blog_id = blog_id
        self.pull_post_type = pull_post_type
        self.pull_post_status = pull_post_status
        self.ignored_meta_fields = list(ignored_meta_fields or IGNORED_META_FIELDS)

    @classmethod
    def from_settings(
        cls, endpoint_id: int, settings: XmlRpcSettings, options: TransportOptions
    ) -> "XmlRpcTransport":
        return cls(
            endpoint_id,
            settings.url,
            settings.username,
            settings.password,
            blog_id=settings.blog_id,
            pull_post_type=settings.pull_post_type,
            pull_post_status=settings.pull_post_status,
            options=options,
        )

    def call(self, method: str, *params: Any) -> Any:
        """
        Invoke a remote method with the blog credentials prepended.

        Raises:
            TransportError: On network failure, HTTP error, fault or malformed response
        """
        body = xmlrpc.client.dumps((self.blog_id, self.username, self.password) + params, methodname=method)
        try:
            with self.client() as client:
                response = client.post(
                    self.url,
                    content=body.encode("utf-8"),
                    headers={"Content-Type": "text/xml"},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} failed: {e}",
                code="xmlrpc-request-failure",
                status_code=e.response.status_code,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} failed: {e}", code="xmlrpc-request-failure")

        try:
            result, _ = xmlrpc.client.loads(response.content, use_builtin_types=True)
        except xmlrpc.client.Fault as e:
            raise TransportError(e.faultString, code=f"xmlrpc-fault-{e.faultCode}")
        except ExpatError as e:
            raise TransportError(f"Malformed XML-RPC response to {method}: {e}", code="xmlrpc-invalid-response")

        return result[0] if result else None

    def get_remote_post(self, remote_id: int) -> Optional[Dict[str, Any]]:
        """Raw remote post, or None if the endpoint reports it missing."""
        try:
            post = self.call("wp.getPost", remote_id)
        except TransportError as e:
            if e.code == POST_NOT_FOUND_FAULT:
                return None
            raise
        return post if isinstance(post, dict) else None

    def is_post_exists(self, remote_id: int) -> bool:
        post = self.get_remote_post(remote_id)
        return post is not None and int(post.get("post_id", 0)) == remote_id

    def test_connection(self) -> bool:
        try:
            self.call("wp.getPostTypes")
        except TransportError as e:
            logger.warning("Connection test for endpoint %d failed: %s", self.endpoint_id, e)
            return False
        return True

    def prepare_payload(self, item: ContentItem) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "post_title": item.title,
            "post_content": item.body,
            "post_excerpt": item.excerpt,
            "post_status": item.status,
            "post_type": item.content_type,
            "terms_names": {taxonomy: list(terms) for taxonomy, terms in item.terms.items()},
            "custom_fields": self.custom_fields(item),
        }
        if item.published_at is not None:
            payload["post_date_gmt"] = to_wire_date(item.published_at)
        return payload

    def custom_fields(self, item: ContentItem) -> List[Dict[str, Any]]:
        """Metadata to copy, without syndication bookkeeping or ignored keys."""
        fields = []
        for key, value in item.metadata.items():
            if key in self.ignored_meta_fields or SYNDICATION_META.match(key):
                continue
            for entry in value if isinstance(value, list) else [value]:
                if entry is None:
                    continue
                fields.append({"key": key, "value": entry})

        if item.guid:
            fields.append({"key": SOURCE_URL_FIELD, "value": item.guid})
        return fields

    def _push(self, payload: Dict[str, Any], item: ContentItem) -> int:
        try:
            return int(self.call("wp.newPost", payload))
        except (TypeError, ValueError):
            raise TransportError("wp.newPost did not return a post ID", code="xmlrpc-push-fail")

    def _update(self, payload: Dict[str, Any], item: ContentItem, remote_id: int) -> None:
        remote_post = self.get_remote_post(remote_id)
        if remote_post is None:
            raise TransportError("Remote post does not exist.", code="syn-remote-post-not-found")

        # Fields sent with only an id are deleted remotely before the new ones are added
        stale = [
            {"id": field["id"], "meta_key_lookup": field.get("key", "")}
            for field in remote_post.get("custom_fields", [])
            if "id" in field
        ]
        payload = dict(payload)
        payload["custom_fields"] = stale + list(payload.get("custom_fields", []))

        if not self.call("wp.editPost", remote_id, payload):
            raise TransportError(f"wp.editPost rejected post {remote_id}", code="xmlrpc-update-fail")

    def _delete(self, remote_id: int) -> bool:
        if not self.call("wp.deletePost", remote_id):
            raise TransportError(f"wp.deletePost rejected post {remote_id}", code="xmlrpc-delete-fail")
        return True

    def filter_pull_args(self, args: Dict[str, Any]) -> Dict[str, Any]:
        args.setdefault("post_type", self.pull_post_type)
        args.setdefault("post_status", self.pull_post_status)
        return args

    def _fetch(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"number": args.get("number", 10), "offset": args.get("offset", 0)}
        for key in ("post_type", "post_status"):
            if args.get(key):
                query[key] = args[key]

        posts = self.call("wp.getPosts", query)
        if not isinstance(posts, list):
            return []
        return [self.remote_to_raw(post) for post in posts if isinstance(post, dict)]

    def _get(self, remote_id: int) -> Optional[Dict[str, Any]]:
        post = self.get_remote_post(remote_id)
        return self.remote_to_raw(post) if post is not None else None

    @staticmethod
    def remote_to_raw(post: Dict[str, Any]) -> Dict[str, Any]:
        """Convert a wp.getPost struct to a raw record dict."""
        published = post.get("post_date_gmt")
        if isinstance(published, datetime):
            published = published.replace(tzinfo=timezone.utc)
        else:
            published = None

        terms: Dict[str, List[str]] = {}
        for term in post.get("terms", []):
            if term.get("taxonomy") and term.get("name"):
                terms.setdefault(term["taxonomy"], []).append(term["name"])

        metadata: Dict[str, Any] = {}
        for field in post.get("custom_fields", []):
            if "key" in field:
                metadata[field["key"]] = field.get("value")

        return {
            "title": post.get("post_title", ""),
            "body": post.get("post_content", ""),
            "excerpt": post.get("post_excerpt", ""),
            "status": post.get("post_status", "draft"),
            "content_type": post.get("post_type", "post"),
            "remote_id": int(post.get("post_id", 0) or 0),
            "guid": post.get("guid") or post.get("link", ""),
            "published_at": published,
            "terms": terms,
            "metadata": metadata,
        }
