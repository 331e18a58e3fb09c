"""
Help center and email template content.
"""
import pytest

from chatpad.core.exceptions import AlreadyExistsError, ForbiddenError, NotFoundError
from chatpad.models.platform import AdminPermission
from chatpad.services.content_service import ContentService
from tests.factories import create_user, auth_headers


@pytest.fixture
async def editor(db):
    return await create_user(
        db, email="editor@pilot.test", owner=False, platform_role="admin",
        admin_permissions=[AdminPermission.VIEW_CONTENT, AdminPermission.MANAGE_CONTENT]
    )


async def test_public_sees_published_only(db, editor):
    service = ContentService(db, "articles")
    await service.create(editor.id, {"title": "Live", "slug": "live", "is_published": True})
    draft = await service.create(editor.id, {"title": "Draft", "slug": "draft"})

    assert [a.slug for a in await service.list(None)] == ["live"]
    assert len(await service.list(editor.id)) == 2

    with pytest.raises(NotFoundError):
        await service.get(None, draft.id)
    with pytest.raises(NotFoundError):
        await service.get_by_key(None, "draft")
    assert (await service.get_by_key(editor.id, "draft")).id == draft.id


async def test_writes_need_manage_content(db, owner, editor):
    service = ContentService(db, "categories")

    with pytest.raises(ForbiddenError):
        await service.create(owner.id, {"name": "Billing", "slug": "billing"})

    category = await service.create(editor.id, {"name": "Billing", "slug": "billing"})
    with pytest.raises(ForbiddenError):
        await service.update(owner.id, category.id, {"is_published": True})
    with pytest.raises(ForbiddenError):
        await service.delete(owner.id, category.id)


async def test_duplicate_keys_are_rejected(db, editor):
    service = ContentService(db, "email_templates")
    template = {"template_type": "team_invitation", "name": "Invite", "subject": "Join", "html_content": "<p/>"}
    await service.create(editor.id, template)

    with pytest.raises(AlreadyExistsError):
        await service.create(editor.id, template)


async def test_deleting_category_orphans_its_articles(db, editor):
    categories = ContentService(db, "categories")
    articles = ContentService(db, "articles")
    category = await categories.create(editor.id, {"name": "Setup", "slug": "setup", "is_published": True})
    article = await articles.create(editor.id, {
        "title": "Install", "slug": "install", "category_id": category.id, "is_published": True
    })

    await categories.delete(editor.id, category.id)

    refreshed = await articles.get(None, article.id)
    await db.refresh(refreshed)
    assert refreshed.category_id is None


async def test_unknown_kind_is_not_found(db):
    with pytest.raises(NotFoundError):
        ContentService(db, "banners")


async def test_content_api(client, owner, editor):
    response = await client.post(
        "/api/content/articles",
        json={"title": "Widget", "slug": "widget", "is_published": True},
        headers=auth_headers(editor)
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/content/articles",
        json={"title": "Nope", "slug": "nope"},
        headers=auth_headers(owner)
    )
    assert response.status_code == 403

    response = await client.get("/api/content/articles/by-slug/widget")
    assert response.status_code == 200
    assert response.json()["title"] == "Widget"

    response = await client.get("/api/content/email-templates/missing")
    assert response.status_code == 404
