from pydantic import BaseModel, EmailStr, Field


class NewUserRequest(BaseModel):
    name: str = Field(min_length=2, max_length=250)
    email: EmailStr = Field(min_length=6, max_length=254)


class UserOut(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class UserShortOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True
