# classroom/api/v1/routes/auth/auth.py

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.config import settings
from classroom.core.errors import AuthenticationError
from classroom.core.logging_config import get_logger
from classroom.core.response import ResponseModel, error_response, success_response
from classroom.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_token,
)
from classroom.db.deps import get_db
from classroom.models.user import Role, User
from classroom.schemas.auth.auth_schema import (
    LoginRequest,
    RefreshTokenRequest,
    Token,
    UserCreate,
    UserOut,
)
from classroom.services.attempts.definitions import Identity
from classroom.services.identity import IdentityService, identity_of, identity_service
from classroom.services.repositories.submissions import parse_id

logger = get_logger("auth")

router = APIRouter(prefix="/auth", tags=["auth"])
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_identity_service() -> IdentityService:
    return identity_service


# Register User
@router.post("/register", status_code=201, response_model=ResponseModel)
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    # 1. Check email isn't already registered
    q_user = await db.execute(select(User).where(User.email == user_in.email))
    if q_user.scalars().first():
        raise HTTPException(status_code=400, detail="Email already registered")

    # 2. Create the user
    user = User(
        name=user_in.name,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        role=Role(user_in.role),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Registered {user.role.value} {user.id}")

    return success_response(
        msg="Registration successful",
        data=UserOut.model_validate(user),
        status_code=201,
    )


# User Login
@router.post("/login", response_model=ResponseModel)
async def login(
    creds: LoginRequest,
    db: AsyncSession = Depends(get_db),
    identities: IdentityService = Depends(get_identity_service),
):
    try:
        identity = await identities.sign_in(db, creds.email, creds.password)
    except AuthenticationError as e:
        return error_response(
            msg=e.message,
            data={"error_type": "INVALID_CREDENTIALS"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    access_token = create_access_token(subject=identity.id, role=identity.role)
    refresh_token = create_refresh_token(subject=identity.id)

    return success_response(
        msg="Login successful!",
        data={
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "role": identity.role.value,
        },
    )


# Refresh token
@router.post("/refresh", response_model=Token)
async def refresh_token(
    req: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        user_id = verify_token(req.refresh_token, refresh=True)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    key = parse_id(user_id) if user_id else None
    user = await db.get(User, key) if key else None
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid user")

    return {
        "access_token": create_access_token(subject=user.id, role=user.role),
        "refresh_token": create_refresh_token(subject=user.id),
        "token_type": "bearer",
    }


# Get Current user
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    key = parse_id(user_id)
    user = await db.get(User, key) if key else None
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def get_current_identity(current_user: User = Depends(get_current_user)) -> Identity:
    return identity_of(current_user)


@router.post("/logout", response_model=ResponseModel)
async def logout(
    identity: Identity = Depends(get_current_identity),
    identities: IdentityService = Depends(get_identity_service),
):
    # Tokens are not revoked; signing out only ends the user's live attempts
    identities.sign_out(identity)
    return success_response(msg="Signed out")


@router.get("/me", response_model=ResponseModel)
async def me(current_user: User = Depends(get_current_user)):
    return success_response(msg="Current user", data=UserOut.model_validate(current_user))
