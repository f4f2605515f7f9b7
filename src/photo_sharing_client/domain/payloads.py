"""Wire models for the REST service responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from photo_sharing_client.domain.models import UserSnapshot


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserPayload(_Payload):
    """User record as served by `/user/:id` and `/user/list`."""

    id: str = Field(alias="_id")
    first_name: str = ""
    last_name: str = ""
    location: str | None = None
    description: str | None = None
    occupation: str | None = None
    login_name: str | None = None


class AuthorPayload(_Payload):
    """Author stub embedded in a comment."""

    id: str = Field(alias="_id")
    first_name: str = ""
    last_name: str = ""


class CommentPayload(_Payload):
    """Comment record, flat or carrying nested replies."""

    id: str = Field(alias="_id")
    photo_id: str | None = None
    user: AuthorPayload | None = None
    user_id: str | None = None
    comment: str = ""
    date_time: datetime | None = None
    parent_id: str | None = None
    replies: list["CommentPayload"] = Field(default_factory=list)


CommentPayload.model_rebuild()


class PhotoPayload(_Payload):
    """Photo record from `/photosOfUser/:id`."""

    id: str = Field(alias="_id")
    user_id: str
    file_name: str
    date_time: datetime | None = None
    comments: list[CommentPayload] = Field(default_factory=list)


class SessionCheckPayload(_Payload):
    """Response of the session-validation endpoint."""

    logged_in: bool = False
    user_id: str | None = None


class LoginPayload(_Payload):
    """Response of a successful login."""

    token: str
    user: UserPayload


def to_user_snapshot(payload: UserPayload) -> UserSnapshot:
    """Copy a user payload into an immutable snapshot."""
    return UserSnapshot(
        id=payload.id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        location=payload.location or "",
        description=payload.description or "",
        occupation=payload.occupation or "",
        login_name=payload.login_name or "",
    )


def user_snapshot_to_json(user: UserSnapshot) -> dict[str, str]:
    """Serialize a snapshot in the server's user shape."""
    return {
        "_id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "location": user.location,
        "description": user.description,
        "occupation": user.occupation,
        "login_name": user.login_name,
    }
