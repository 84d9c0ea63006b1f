from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, Field

from . import config
from .timeutils import now_utc


NonNegativeInt = Annotated[int, Field(ge=0)]


def new_id() -> str:
    return str(uuid.uuid4())


class Role(str, enum.Enum):
    user = "user"
    developer = "developer"
    admin = "admin"
    creator = "creator"


class GrantSource(str, enum.Enum):
    bootstrap = "bootstrap"
    auto = "auto"
    admin = "admin"


ADMIN_ROLES = frozenset({Role.admin, Role.creator})


class Account(BaseModel):
    id: str = Field(default_factory=new_id)
    username: str
    password_hash: str
    role: Role = Role.user
    is_developer: bool = False
    approved: bool = True
    created_at: datetime = Field(default_factory=now_utc)
    display_name: str = ""
    avatar: str = config.DEFAULT_AVATAR

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def can_publish(self) -> bool:
        return self.is_developer and self.approved


class DeveloperProfile(BaseModel):
    id: str
    username: str
    bio: str = ""
    avatar: str = config.DEFAULT_AVATAR
    approved: bool = False
    verified: bool = False


class Session(BaseModel):
    token: str = Field(default_factory=new_id)
    account_id: str
    created_at: datetime = Field(default_factory=now_utc)


class FollowEdge(BaseModel):
    follower_id: str
    followed_id: str
    at: datetime = Field(default_factory=now_utc)


class FollowGraph(BaseModel):
    boosts: Dict[str, NonNegativeInt] = Field(default_factory=dict)
    edges: List[FollowEdge] = Field(default_factory=list)

    def has_edge(self, follower_id: str, followed_id: str) -> bool:
        return any(e.follower_id == follower_id and e.followed_id == followed_id for e in self.edges)

    def follower_count(self, developer_id: str) -> int:
        edges = sum(1 for e in self.edges if e.followed_id == developer_id)
        return edges + self.boosts.get(developer_id, 0)


class VerificationRecord(BaseModel):
    granted_by: GrantSource
    date: datetime = Field(default_factory=now_utc)
    badge: str = config.DEFAULT_BADGE


class Like(BaseModel):
    user_id: str
    file_id: str
    at: datetime = Field(default_factory=now_utc)


class Comment(BaseModel):
    id: str = Field(default_factory=new_id)
    file_id: str
    user_id: str
    text: str
    at: datetime = Field(default_factory=now_utc)


class Report(BaseModel):
    id: str = Field(default_factory=new_id)
    file_id: str
    reason: str
    reporter_id: str
    at: datetime = Field(default_factory=now_utc)


class FileRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    owner_id: str
    title: str
    description: str
    resource_url: str = ""
    created_at: datetime = Field(default_factory=now_utc)


class RegisterRequest(BaseModel):
    username: str = ""
    password: str = ""
    role: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, alias="displayName")
    bio: Optional[str] = None
    avatar: Optional[str] = None

    model_config = {"populate_by_name": True}


class FileUpload(BaseModel):
    title: str = ""
    description: str = ""
    resource_url: str = Field(default="", alias="zipUrl")

    model_config = {"populate_by_name": True}


class FileAction(BaseModel):
    file_id: Optional[str] = Field(default=None, alias="fileId")

    model_config = {"populate_by_name": True}


class CommentCreate(FileAction):
    text: Optional[str] = None


class ReportCreate(FileAction):
    reason: Optional[str] = None


class DeveloperAction(BaseModel):
    developer_id: Optional[str] = Field(default=None, alias="devId")

    model_config = {"populate_by_name": True}


class VerifiedAccountCreate(BaseModel):
    username: str = ""
    password: str = ""
    followers_boost: int = Field(default=config.DEFAULT_CREATED_FOLLOWER_BOOST, alias="followersBoost")

    model_config = {"populate_by_name": True}


def public_account(account: Account) -> Dict[str, Any]:
    payload = account.model_dump(mode="json")
    payload.pop("password_hash", None)
    return payload
