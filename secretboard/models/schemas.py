#  Secret Board - Pydantic Schemas
#
#  Request/response models for the REST API.
#
#  Depends on: models/records.py
#  Used by:    routes/*

from pydantic import BaseModel, EmailStr, Field

from secretboard.models.records import Reply, Secret, User


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    email: str | None = None
    has_password: bool = True
    oauth_linked: bool = False

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            has_password=user.has_password,
            oauth_linked=user.oauth_subject_id is not None,
        )


class OAuthProviderInfo(BaseModel):
    name: str
    display_name: str


# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------

class SecretCreate(BaseModel):
    text: str = Field(..., min_length=1)


class ReplyCreate(BaseModel):
    text: str = Field(..., min_length=1)


class ReplyOut(BaseModel):
    id: str
    secret_id: str
    author_id: str
    text: str
    created_at: float

    @classmethod
    def from_reply(cls, reply: Reply) -> "ReplyOut":
        return cls(
            id=reply.id,
            secret_id=reply.secret_id,
            author_id=reply.author_id,
            text=reply.text,
            created_at=reply.created_at,
        )


class SecretOut(BaseModel):
    id: str
    owner_id: str
    text: str
    created_at: float
    replies: list[ReplyOut] = Field(default_factory=list)

    @classmethod
    def from_secret(cls, secret: Secret) -> "SecretOut":
        return cls(
            id=secret.id,
            owner_id=secret.owner_id,
            text=secret.text,
            created_at=secret.created_at,
            replies=[ReplyOut.from_reply(r) for r in secret.replies],
        )


class BoardEntryOut(BaseModel):
    user_id: str
    secrets: list[SecretOut]


class BoardOut(BaseModel):
    current_user_id: str | None = None  # lets the client show delete controls
    users: list[BoardEntryOut] = Field(default_factory=list)
