"""
Platform content routes: help center and email templates.
Reads are public (published/active only); writes need manage_content.
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.content_service import ContentService
from chatpad.schemas.content import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
    ArticleCreate, ArticleUpdate, ArticleResponse,
    EmailTemplateCreate, EmailTemplateUpdate, EmailTemplateResponse
)
from chatpad.schemas.common import MessageResponse
from chatpad.api.deps import get_current_user, get_optional_user
from chatpad.models.user import User

router = APIRouter(prefix="/api/content", tags=["content"])


def _viewer_id(user: Optional[User]) -> Optional[uuid.UUID]:
    return user.id if user else None


# -----------------------------------------------------------------------------
# Help center categories
# -----------------------------------------------------------------------------

@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(
    current_user: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "categories").list(_viewer_id(current_user))


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    request: CategoryCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "categories").create(current_user.id, request.model_dump())


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    request: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "categories").update(
        current_user.id, category_id, request.model_dump(exclude_unset=True)
    )


@router.delete("/categories/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await ContentService(session, "categories").delete(current_user.id, category_id)
    return {"message": "Category deleted"}


# -----------------------------------------------------------------------------
# Help center articles
# -----------------------------------------------------------------------------

@router.get("/articles", response_model=List[ArticleResponse])
async def list_articles(
    category_id: Optional[uuid.UUID] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "articles").list(_viewer_id(current_user), category_id)


@router.get("/articles/by-slug/{slug}", response_model=ArticleResponse)
async def get_article_by_slug(
    slug: str,
    current_user: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "articles").get_by_key(_viewer_id(current_user), slug)


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: uuid.UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "articles").get(_viewer_id(current_user), article_id)


@router.post("/articles", response_model=ArticleResponse, status_code=201)
async def create_article(
    request: ArticleCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "articles").create(current_user.id, request.model_dump())


@router.patch("/articles/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: uuid.UUID,
    request: ArticleUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "articles").update(
        current_user.id, article_id, request.model_dump(exclude_unset=True)
    )


@router.delete("/articles/{article_id}", response_model=MessageResponse)
async def delete_article(
    article_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await ContentService(session, "articles").delete(current_user.id, article_id)
    return {"message": "Article deleted"}


# -----------------------------------------------------------------------------
# Email templates
# -----------------------------------------------------------------------------

@router.get("/email-templates", response_model=List[EmailTemplateResponse])
async def list_email_templates(
    current_user: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "email_templates").list(_viewer_id(current_user))


@router.get("/email-templates/{template_type}", response_model=EmailTemplateResponse)
async def get_email_template(
    template_type: str,
    current_user: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "email_templates").get_by_key(_viewer_id(current_user), template_type)


@router.post("/email-templates", response_model=EmailTemplateResponse, status_code=201)
async def create_email_template(
    request: EmailTemplateCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "email_templates").create(current_user.id, request.model_dump())


@router.patch("/email-templates/{template_id}", response_model=EmailTemplateResponse)
async def update_email_template(
    template_id: uuid.UUID,
    request: EmailTemplateUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ContentService(session, "email_templates").update(
        current_user.id, template_id, request.model_dump(exclude_unset=True)
    )


@router.delete("/email-templates/{template_id}", response_model=MessageResponse)
async def delete_email_template(
    template_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await ContentService(session, "email_templates").delete(current_user.id, template_id)
    return {"message": "Email template deleted"}
