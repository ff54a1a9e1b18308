"""Invitation endpoints: owner management and the public invitation link."""

from fastapi import APIRouter, status

from app.api.dependencies import CurrentUserDep, DbDep, OptionalUserDep
from app.errors import AuthenticationRequired
from app.models.invitation import AcceptResult, Invitation, InvitationCreate, InvitationDetails
from app.services import invitation_service

router = APIRouter(tags=["invitations"])


@router.post(
    "/babies/{baby_id}/invitations",
    response_model=Invitation,
    status_code=status.HTTP_201_CREATED,
)
async def create_invitation(
    baby_id: int, payload: InvitationCreate, db: DbDep, user: CurrentUserDep
) -> Invitation:
    """Create an invitation; share the returned link with the invitee."""
    return await invitation_service.create_invitation(db, user, baby_id, payload.email, payload.role)


@router.get("/babies/{baby_id}/invitations", response_model=list[Invitation])
async def list_invitations(baby_id: int, db: DbDep, user: CurrentUserDep) -> list[Invitation]:
    """Return pending invitations, flagging the ones past their expiry."""
    return await invitation_service.list_invitations(db, user, baby_id)


@router.post("/babies/{baby_id}/invitations/{invitation_id}/cancel", response_model=Invitation)
async def cancel_invitation(
    baby_id: int, invitation_id: int, db: DbDep, user: CurrentUserDep
) -> Invitation:
    return await invitation_service.cancel_invitation(db, user, baby_id, invitation_id)


@router.post("/babies/{baby_id}/invitations/{invitation_id}/resend", response_model=Invitation)
async def resend_invitation(
    baby_id: int, invitation_id: int, db: DbDep, user: CurrentUserDep
) -> Invitation:
    """Extend the expiry by another week; the link stays the same."""
    return await invitation_service.resend_invitation(db, user, baby_id, invitation_id)


@router.get("/invite/{token}", response_model=InvitationDetails)
async def fetch_invitation(token: str, db: DbDep) -> InvitationDetails:
    """Show an invitation to anyone holding the link, signed in or not."""
    return await invitation_service.fetch_invitation(db, token)


@router.post("/invite/{token}/accept", response_model=AcceptResult)
async def accept_invitation(token: str, db: DbDep, user: OptionalUserDep) -> AcceptResult:
    """Accept as the signed-in user; anonymous visitors are sent to sign in first."""
    if user is None:
        raise AuthenticationRequired(
            "Sign in to accept this invitation",
            sign_in_url=invitation_service.sign_in_url(token),
        )
    return await invitation_service.accept_invitation(db, token, user)


@router.post("/invite/{token}/decline", status_code=status.HTTP_204_NO_CONTENT)
async def decline_invitation(token: str, db: DbDep, user: OptionalUserDep) -> None:
    if user is None:
        raise AuthenticationRequired(
            "Sign in to decline this invitation",
            sign_in_url=invitation_service.sign_in_url(token),
        )
    await invitation_service.decline_invitation(db, token, user)
