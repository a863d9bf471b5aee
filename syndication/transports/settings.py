"""Per-kind endpoint settings."""

from pydantic import BaseModel, Field

from ..mapping import FeedMapping

REST_API_BASE = "https://public-api.wordpress.com/rest/v1/"


class XmlPullSettings(BaseModel):
    """Settings of XML feed endpoints."""

    url: str = Field("", description="Feed URL")
    mapping: FeedMapping = Field(..., description="Mapping from feed nodes to records")


class RssPullSettings(BaseModel):
    """Settings of RSS/Atom feed endpoints."""

    feed_url: str = Field("", description="Feed URL")
    default_content_type: str = Field("post", description="Content type of pulled records")
    default_status: str = Field("draft", description="Status of pulled records")
    import_categories: bool = Field(False, description="Map entry tags to category terms")


class RestPushSettings(BaseModel):
    """Settings of hosted REST API endpoints."""

    token: str = Field("", description="OAuth bearer token (stored encrypted)")
    blog_id: str = Field("", description="Remote blog identifier")
    api_base: str = Field(REST_API_BASE, description="API base URL")


class XmlRpcSettings(BaseModel):
    """Settings of XML-RPC endpoints."""

    url: str = Field("", description="Site URL or xmlrpc.php URL")
    username: str = Field("", description="Remote user")
    password: str = Field("", description="Remote password (stored encrypted)")
    blog_id: str = Field("1", description="Remote blog identifier")
    pull_post_type: str = Field("post", description="Post type read when pulling")
    pull_post_status: str = Field("publish", description="Post status read when pulling")
