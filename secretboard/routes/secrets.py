#  Secret Board - Secrets Routes
#
#  Public board listing plus posting/deleting secrets and replies.
#  Mutations require a session; deletes of things you don't own are no-ops.
#
#  Depends on: container.py, services/secret_service.py, middleware/auth.py
#  Used by:    app.py

from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Depends

from secretboard.container import Container
from secretboard.middleware.auth import get_current_user, get_optional_user
from secretboard.models.records import User
from secretboard.models.schemas import (
    BoardEntryOut,
    BoardOut,
    ReplyCreate,
    ReplyOut,
    SecretCreate,
    SecretOut,
)
from secretboard.services.secret_service import SecretService

router = APIRouter(prefix="/secrets", tags=["secrets"])


@router.get("")
@inject
async def list_secrets(
    viewer: User | None = Depends(get_optional_user),
    secrets: SecretService = Depends(Provide[Container.secrets]),
) -> BoardOut:
    """Every user's secrets with their replies. Visible without logging in."""
    users = await secrets.list_secrets()
    return BoardOut(
        current_user_id=viewer.id if viewer else None,
        users=[
            BoardEntryOut(
                user_id=u.id,
                secrets=[SecretOut.from_secret(s) for s in u.secrets],
            )
            for u in users
        ],
    )


@router.post("", status_code=201)
@inject
async def post_secret(
    body: SecretCreate,
    user: User = Depends(get_current_user),
    secrets: SecretService = Depends(Provide[Container.secrets]),
) -> SecretOut:
    secret = await secrets.post_secret(user.id, body.text)
    return SecretOut.from_secret(secret)


@router.delete("/{secret_id}", status_code=204)
@inject
async def delete_secret(
    secret_id: str,
    user: User = Depends(get_current_user),
    secrets: SecretService = Depends(Provide[Container.secrets]),
):
    """Delete one of your own secrets. Unknown ids succeed silently."""
    await secrets.delete_secret(user.id, secret_id)


@router.post("/{secret_id}/replies", status_code=201)
@inject
async def add_reply(
    secret_id: str,
    body: ReplyCreate,
    user: User = Depends(get_current_user),
    secrets: SecretService = Depends(Provide[Container.secrets]),
) -> ReplyOut:
    """Reply to any user's secret. 404 when the secret doesn't exist."""
    reply = await secrets.add_reply(secret_id, body.text, user.id)
    return ReplyOut.from_reply(reply)


@router.delete("/{secret_id}/replies/{reply_id}", status_code=204)
@inject
async def delete_reply(
    secret_id: str,
    reply_id: str,
    user: User = Depends(get_current_user),
    secrets: SecretService = Depends(Provide[Container.secrets]),
):
    # Only the author's request removes anything
    await secrets.delete_reply(secret_id, reply_id, user.id)
