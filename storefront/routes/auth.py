from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.errors import ConflictError, UnauthorizedError
from storefront.models.user import User
from storefront.schemas.user_schemas import (
    RegisterResponse,
    Token,
    UserLogin,
    UserOut,
    UserRegister,
)
from storefront.utils.hash import hash_password, verify_password
from storefront.utils.token import create_access_token

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    existing_user = session.exec(select(User).where(User.email == payload.email)).first()
    if existing_user:
        raise ConflictError("User with this email already exists")

    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
        role="customer",
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    return RegisterResponse(
        message="Registration successful",
        user=UserOut(id=user.id, name=user.name, email=user.email, role=user.role),
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email)).first()

    if not user or not verify_password(payload.password, user.password):
        raise UnauthorizedError("Invalid email or password")

    token = create_access_token({"user_id": user.id})
    return Token(access_token=token, token_type="bearer")
