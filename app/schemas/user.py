from typing import Optional
from pydantic import BaseModel, ConfigDict

class UserBase(BaseModel):
    username: str

class UserOut(UserBase):
    id: int
    role: str
    full_name: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
