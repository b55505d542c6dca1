from pydantic import BaseModel, EmailStr, Field


class UserRegister(BaseModel):
    name: str = Field(min_length=2, description="Name must be at least 2 characters")
    email: EmailStr
    password: str = Field(min_length=8)


class UserLogin(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str


class RegisterResponse(BaseModel):
    message: str
    user: UserOut
