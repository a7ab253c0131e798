"""Request and response bodies."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    login: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=120)
    bio: Optional[str] = None


class LoginRequest(BaseModel):
    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    login: str
    name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class CompletionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    habit_id: int
    date_completed: date
    created_at: datetime


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    goal: str = ""
    is_public: bool = False


class HabitUpdate(BaseModel):
    # empty strings leave the stored value unchanged
    name: Optional[str] = Field(default=None, max_length=120)
    goal: Optional[str] = None
    is_public: Optional[bool] = None


class HabitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    goal: str
    is_public: bool
    created_at: datetime
    updated_at: datetime
    completions: list[CompletionOut] = []


class PublicProfile(BaseModel):
    user: UserOut
    habits: list[HabitOut]


class ToggleRequest(BaseModel):
    date: str = ""


class ToggleResponse(BaseModel):
    message: str
    completed: bool
    date: date


class UndoResponse(BaseModel):
    message: str
    date: date


class MessageResponse(BaseModel):
    message: str
