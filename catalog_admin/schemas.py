"""
Pydantic schemas for the catalog admin API.
"""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict

from catalog_admin.records import parse_comment_count


def _as_text(value):
    # Older records may hold numbers where strings are expected now.
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _as_field_text(value):
    return "" if value is None else _as_text(value)


Text = Annotated[str, BeforeValidator(_as_field_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_as_text)]
CommentCount = Annotated[int, BeforeValidator(parse_comment_count)]


class LoginResponse(BaseModel):
    success: bool
    message: str


class LogoutResponse(BaseModel):
    success: bool
    message: str


class AuthStatusResponse(BaseModel):
    authenticated: bool
    username: Optional[str] = None


class Product(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Text
    title: OptionalText = None
    price: Text = ""
    description: Text = ""
    image: Text = ""
    whatsappLink: Text = ""
    createdAt: OptionalText = None
    updatedAt: OptionalText = None


class Course(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Text
    title: OptionalText = None
    date: Text = ""
    comments: CommentCount = 0
    description: Text = ""
    content: Text = ""
    image: Text = ""
    createdAt: OptionalText = None


class ProductResponse(BaseModel):
    success: bool
    product: Product


class CourseResponse(BaseModel):
    success: bool
    course: Course


class DeleteResponse(BaseModel):
    success: bool
    message: str
