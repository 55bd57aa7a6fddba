from __future__ import annotations

import base64
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .core.decoding import (
    DateOnly,
    NullBool,
    NullDict,
    NullInt,
    NullStr,
    OptionalUrl,
    TolerantDateTime,
    TolerantEnum,
    null_default,
)

StrList = Annotated[List[str], null_default(list)]


class ServiceModel(BaseModel):
    """
    Base for decoded service payloads.
    Unknown keys are ignored so server-side additions never break decoding.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- GitHub ---


class RepoVisibility(TolerantEnum):
    PUBLIC = "public"
    PRIVATE = "private"
    INTERNAL = "internal"
    NOOP = ""
    FALLTHROUGH = "*"


class ContentType(TolerantEnum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    SUBMODULE = "submodule"
    NOOP = ""
    FALLTHROUGH = "*"


class AssetState(TolerantEnum):
    UPLOADED = "uploaded"
    OPEN = "open"
    NOOP = ""
    FALLTHROUGH = "*"


class SimpleUser(ServiceModel):
    login: NullStr = ""
    id: NullInt = 0
    type: NullStr = ""
    site_admin: NullBool = False
    html_url: OptionalUrl = None


class Repository(ServiceModel):
    id: NullInt = 0
    name: NullStr = ""
    full_name: NullStr = ""
    description: NullStr = ""
    private: NullBool = False
    archived: NullBool = False
    visibility: RepoVisibility = RepoVisibility.NOOP
    default_branch: NullStr = ""
    stargazers_count: NullInt = 0
    topics: StrList = Field(default_factory=list)
    owner: Optional[SimpleUser] = None
    html_url: OptionalUrl = None
    created_at: TolerantDateTime = None
    pushed_at: TolerantDateTime = None


class RepositoryUpdate(ServiceModel):
    name: Optional[str] = None
    description: Optional[str] = None
    private: Optional[bool] = None
    archived: Optional[bool] = None
    default_branch: Optional[str] = None


class Topics(ServiceModel):
    names: StrList = Field(default_factory=list)


class ContentFile(ServiceModel):
    type: ContentType = ContentType.FILE
    name: NullStr = ""
    path: NullStr = ""
    sha: NullStr = ""
    size: NullInt = 0
    encoding: NullStr = ""
    content: NullStr = ""
    download_url: OptionalUrl = None

    @property
    def decoded_content(self) -> bytes:
        if self.encoding == "base64":
            return base64.b64decode(self.content)
        return self.content.encode("utf-8")


class ContentSymlink(ServiceModel):
    type: ContentType = ContentType.SYMLINK
    name: NullStr = ""
    path: NullStr = ""
    sha: NullStr = ""
    size: NullInt = 0
    target: NullStr = ""


class ContentSubmodule(ServiceModel):
    type: ContentType = ContentType.SUBMODULE
    name: NullStr = ""
    path: NullStr = ""
    sha: NullStr = ""
    submodule_git_url: OptionalUrl = None


class DirectoryEntry(ServiceModel):
    type: ContentType = ContentType.NOOP
    name: NullStr = ""
    path: NullStr = ""
    sha: NullStr = ""
    size: NullInt = 0
    download_url: OptionalUrl = None


RepoContent = Union[ContentFile, ContentSymlink, ContentSubmodule, List[DirectoryEntry]]


class ReleaseAsset(ServiceModel):
    id: NullInt = 0
    name: NullStr = ""
    label: NullStr = ""
    content_type: NullStr = ""
    state: AssetState = AssetState.NOOP
    size: NullInt = 0
    download_count: NullInt = 0
    browser_download_url: OptionalUrl = None
    uploader: Optional[SimpleUser] = None


class InstallationToken(ServiceModel):
    token: NullStr = ""
    expires_at: TolerantDateTime = None
    permissions: NullDict = Field(default_factory=dict)
    repository_selection: NullStr = ""


class OAuthApp(ServiceModel):
    name: NullStr = ""
    url: OptionalUrl = None
    client_id: NullStr = ""


class TokenCheck(ServiceModel):
    id: NullInt = 0
    token: NullStr = ""
    hashed_token: NullStr = ""
    note: NullStr = ""
    scopes: StrList = Field(default_factory=list)
    app: Optional[OAuthApp] = None
    user: Optional[SimpleUser] = None
    expires_at: TolerantDateTime = None


# --- Okta ---


class GroupType(TolerantEnum):
    OKTA_GROUP = "OKTA_GROUP"
    APP_GROUP = "APP_GROUP"
    BUILT_IN = "BUILT_IN"
    NOOP = ""
    FALLTHROUGH = "*"


class GroupProfile(ServiceModel):
    name: NullStr = ""
    description: NullStr = ""


class Group(ServiceModel):
    id: NullStr = ""
    type: GroupType = GroupType.NOOP
    profile: GroupProfile = Field(default_factory=GroupProfile)
    object_class: StrList = Field(default_factory=list, alias="objectClass")
    created: TolerantDateTime = None
    last_updated: TolerantDateTime = Field(default=None, alias="lastUpdated")
    last_membership_updated: TolerantDateTime = Field(
        default=None, alias="lastMembershipUpdated"
    )


# --- Event feed ---


class EventSeverity(TolerantEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    NOOP = ""
    FALLTHROUGH = "*"


class Event(ServiceModel):
    id: NullStr = ""
    kind: NullStr = ""
    severity: EventSeverity = EventSeverity.NOOP
    occurred_on: DateOnly = None
    attributes: NullDict = Field(default_factory=dict)

    def attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)


CONTENT_VARIANTS: Dict[str, Any] = {
    "file": ContentFile,
    "symlink": ContentSymlink,
    "submodule": ContentSubmodule,
}
