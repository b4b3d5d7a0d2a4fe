from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.errors import DuplicateKeyError

from spendshare.core.auth import create_access_token, get_current_user, get_password_hash, verify_password
from spendshare.db.mongo import get_db
from spendshare.models.user import User
from spendshare.repositories.user_repo import UserRepository
from spendshare.schemas.auth import TokenResponse, UserLogin, UserSignup
from spendshare.schemas.user import UserResponse
from spendshare.utils.serialization import to_response

router = APIRouter()


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(user_data: UserSignup, db=Depends(get_db)):
    """Register a new user"""
    user_repo = UserRepository(db)

    if await user_repo.get_user_by_email(user_data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    if await user_repo.get_user_by_username(user_data.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already taken")

    user = User(
        name=user_data.name,
        username=user_data.username,
        email=user_data.email.lower(),
        password_hash=get_password_hash(user_data.password)
    )
    try:
        await user_repo.create_user(user)
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email or username already registered")

    return TokenResponse(
        access_token=create_access_token(str(user.id)),
        user=to_response(UserResponse, user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db=Depends(get_db)):
    """Login with email and password"""
    user = await UserRepository(db).get_user_by_email(credentials.email)
    if user is None or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    return TokenResponse(
        access_token=create_access_token(str(user.id)),
        user=to_response(UserResponse, user)
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return to_response(UserResponse, current_user)
