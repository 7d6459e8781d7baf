from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., description="Account e-mail")
    password: str = Field(..., min_length=1, description="Account password")
