"""Back-office authentication and the per-restaurant access dependencies"""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resto_booking.config import settings
from resto_booking.context import RequestContext
from resto_booking.database import get_db
from resto_booking.errors import NotEntitledError
from resto_booking.models.user import User, UserRole
from resto_booking.schemas.auth import Token, RefreshRequest, UserCreate, UserResponse
from resto_booking.services.subscription import is_entitled

router = APIRouter()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

ACCESS = "access"
REFRESH = "refresh"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_token(user: User, token_type: str = ACCESS) -> str:
    """Sign a JWT for the user; access tokens carry the restaurant and role"""
    if token_type == ACCESS:
        lifetime = timedelta(minutes=settings.access_token_expire_minutes)
    else:
        lifetime = timedelta(days=settings.refresh_token_expire_days)

    payload = {"sub": str(user.id), "type": token_type, "exp": datetime.utcnow() + lifetime, "jti": uuid4().hex}
    if token_type == ACCESS:
        payload["restaurant_id"] = str(user.restaurant_id) if user.restaurant_id else None
        payload["role"] = user.role.value
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _token_user(db: AsyncSession, token: str, token_type: str) -> User:
    """Resolve an active user from a token of the expected type, or raise 401"""
    detail = "Could not validate credentials" if token_type == ACCESS else "Invalid refresh token"
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        user_id = UUID(payload["sub"])
    except (JWTError, KeyError, ValueError):
        raise _unauthorized(detail)

    if payload.get("type") != token_type:
        raise _unauthorized(detail)

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise _unauthorized(detail)
    return user


async def _issue_tokens(db: AsyncSession, user: User) -> Token:
    """New access/refresh pair; the stored refresh token is rotated"""
    user.refresh_token = create_token(user, REFRESH)
    await db.commit()

    return Token(
        access_token=create_token(user, ACCESS),
        refresh_token=user.refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await _token_user(db, token, ACCESS)


def _check_role(user: User, required_role: UserRole) -> None:
    if not user.has_permission(required_role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def require_role(required_role: UserRole):
    """Dependency factory for role-based access control"""
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        _check_role(current_user, required_role)
        return current_user
    return role_checker


async def verify_restaurant_access(
    restaurant_id: UUID,
    current_user: User = Depends(get_current_user),
) -> User:
    if not current_user.can_access(restaurant_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this restaurant",
        )
    return current_user


def restaurant_context(required_role: UserRole = UserRole.STAFF):
    """Dependency factory: restaurant access, role and subscription checks, then a RequestContext"""
    async def build_context(
        restaurant_id: UUID,
        current_user: User = Depends(get_current_user),
    ) -> RequestContext:
        await verify_restaurant_access(restaurant_id, current_user)
        _check_role(current_user, required_role)

        if not is_entitled(current_user):
            raise NotEntitledError("An active subscription is required for this feature")

        return RequestContext(
            restaurant_id=restaurant_id,
            user_id=current_user.id,
            role=current_user.role,
            actor_name=current_user.display_name,
        )
    return build_context


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.email == form_data.username))
    user = result.scalar_one_or_none()

    if not user or not pwd_context.verify(form_data.password, user.hashed_password):
        raise _unauthorized("Incorrect email or password")
    if not user.is_active:
        raise _unauthorized("User account is disabled")

    user.last_login = datetime.utcnow()
    return await _issue_tokens(db, user)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    request: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Swap a refresh token for a new pair; a rotated-out token is refused"""
    user = await _token_user(db, request.refresh_token, REFRESH)
    if user.refresh_token != request.refresh_token:
        raise _unauthorized("Invalid refresh token")
    return await _issue_tokens(db, user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Current user, with whether the subscription unlocks the back-office"""
    user_info = UserResponse.model_validate(current_user)
    user_info.entitled = is_entitled(current_user)
    return user_info


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    current_user.refresh_token = None
    await db.commit()
    return {"message": "Successfully logged out"}


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(require_role(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Create a back-office user (restaurant admins create staff of their own restaurant)"""
    if current_user.role != UserRole.SUPER_ADMIN:
        if user_data.role == UserRole.SUPER_ADMIN or user_data.restaurant_id != current_user.restaurant_id:
            raise HTTPException(status_code=403, detail="Insufficient permissions")

    existing = await db.execute(select(User).where(User.email == user_data.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name,
        phone=user_data.phone,
        role=user_data.role,
        restaurant_id=user_data.restaurant_id,
        subscription_status=current_user.subscription_status,
        subscription_end_date=current_user.subscription_end_date,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    return user
