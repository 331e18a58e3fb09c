"""
Help center and email template schemas.
"""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel


# Help center categories
class CategoryCreate(BaseModel):
    name: str
    slug: str
    description: Optional[str] = None
    order_index: int = 0
    is_published: bool = False


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    order_index: Optional[int] = None
    is_published: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    order_index: int
    is_published: bool
    updated_at: datetime

    class Config:
        from_attributes = True


# Help center articles
class ArticleCreate(BaseModel):
    category_id: Optional[uuid.UUID] = None
    title: str
    slug: str
    content: str = ""
    description: Optional[str] = None
    order_index: int = 0
    is_published: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Installing the chat widget",
                "slug": "installing-the-chat-widget",
                "content": "Paste the embed snippet before </body>.",
                "is_published": True
            }
        }


class ArticleUpdate(BaseModel):
    category_id: Optional[uuid.UUID] = None
    title: Optional[str] = None
    slug: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    order_index: Optional[int] = None
    is_published: Optional[bool] = None


class ArticleResponse(BaseModel):
    id: uuid.UUID
    category_id: Optional[uuid.UUID] = None
    title: str
    slug: str
    content: str
    description: Optional[str] = None
    order_index: int
    is_published: bool
    updated_at: datetime

    class Config:
        from_attributes = True


# Email templates
class EmailTemplateCreate(BaseModel):
    template_type: str
    name: str
    subject: str
    html_content: str
    active: bool = True


class EmailTemplateUpdate(BaseModel):
    name: Optional[str] = None
    subject: Optional[str] = None
    html_content: Optional[str] = None
    active: Optional[bool] = None


class EmailTemplateResponse(BaseModel):
    id: uuid.UUID
    template_type: str
    name: str
    subject: str
    html_content: str
    active: bool
    updated_at: datetime

    class Config:
        from_attributes = True
