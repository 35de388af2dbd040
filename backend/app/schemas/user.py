from pydantic import BaseModel, EmailStr

from app.models.user import UserRole


class UserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: str
    name: str
    role: UserRole

    model_config = {"from_attributes": True}
