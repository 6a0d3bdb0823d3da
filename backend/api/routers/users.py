"""Users router - signup, listing, lookup and account deletion."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.dependencies import get_current_user
from api.errors import ForbiddenError, UserNotFoundError
from api.models import User
from api.schemas.user import UserCreate, UserResponse
from api.services.database import get_db
from api.services.user_service import UserService

router = APIRouter(prefix="/api/users")


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
)
async def create_user(
    request: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Sign up with username, email and password.

    Raises:
        UsernameExistsError: 409 if the username is taken
        EmailExistsError: 409 if the email is registered
    """
    user = await service.create_user(
        username=request.username,
        email=request.email,
        password=request.password,
    )
    return UserResponse.model_validate(user)


@router.get("", response_model=list[UserResponse], summary="List users")
async def list_users(
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    users = await service.list_users()
    return [UserResponse.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError()
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete your own account",
)
async def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> Response:
    """Delete the authenticated user's account.

    Users may only delete themselves.
    """
    if current_user.id != user_id:
        raise ForbiddenError("You can only delete your own account")

    if not await service.delete_user(user_id):
        raise UserNotFoundError()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
