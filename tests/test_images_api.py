import pytest
from sqlalchemy import select

from gallery_admin.models.activity import ActivityEvent
from gallery_admin.models.category import Category
from gallery_admin.models.image import Image


def _events(db_session, action: str) -> list[ActivityEvent]:
    db_session.expire_all()
    return list(db_session.scalars(select(ActivityEvent).where(ActivityEvent.action == action)))


def _image_payload(category_id: int, **overrides) -> dict:
    payload = {
        "title": "Morning fog",
        "description": "Valley at 6am",
        "tags": ["fog", "valley", "fog"],
        "category_id": category_id,
        "storage_key": "uploads/fog.jpg",
        "thumbnail_url": "https://img.example.com/fog_thumb.jpg",
        "original_url": "https://img.example.com/fog.jpg",
        "file_size": 2048,
    }
    payload.update(overrides)
    return payload


@pytest.mark.anyio
async def test_upload_update_and_delete_image(client, db_session, editor_user, editor_headers, make_category):
    category = make_category("Landscapes")

    created = await client.post("/admin/images", json=_image_payload(category.id), headers=editor_headers)
    assert created.status_code == 201
    image_id = created.json()["id"]
    assert created.json()["tags"] == ["fog", "valley"]

    [upload] = _events(db_session, "IMAGE_UPLOAD")
    assert upload.subject_id == image_id
    assert upload.actor_id == editor_user.id
    assert upload.details == {"imageTitle": "Morning fog"}

    updated = await client.put(f"/admin/images/{image_id}", json={"title": "Evening fog"}, headers=editor_headers)
    assert updated.status_code == 200
    [update] = _events(db_session, "IMAGE_UPDATE")
    assert update.details == {"imageTitle": "Evening fog", "changes": {"title": "Evening fog"}}

    deleted = await client.delete(f"/admin/images/{image_id}", headers=editor_headers)
    assert deleted.status_code == 204
    [delete] = _events(db_session, "IMAGE_DELETE")
    assert delete.subject_id is None
    assert delete.details == {"imageTitle": "Evening fog"}

    # Earlier events survive the image and lose their subject link.
    [upload] = _events(db_session, "IMAGE_UPLOAD")
    assert upload.subject_id is None


@pytest.mark.anyio
async def test_upload_into_unknown_category(client, editor_headers):
    response = await client.post("/admin/images", json=_image_payload(999999), headers=editor_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"


@pytest.mark.anyio
async def test_bulk_delete_records_single_event(client, db_session, editor_user, editor_headers, make_image):
    images = [make_image(editor_user, title=f"shot-{i}") for i in range(3)]
    ids = [image.id for image in images]

    response = await client.post(
        "/admin/images/bulk",
        json={"operation": "delete", "image_ids": ids},
        headers=editor_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"operation": "delete", "affected": 3}
    [event] = _events(db_session, "IMAGE_BULK_DELETE")
    assert event.details == {"count": 3, "imageIds": sorted(ids)}
    assert db_session.scalars(select(Image).where(Image.id.in_(ids))).all() == []


@pytest.mark.anyio
async def test_bulk_tags_and_category(client, db_session, editor_user, editor_headers, make_image, make_category):
    image = make_image(editor_user)
    target = make_category("Archive")

    added = await client.post(
        "/admin/images/bulk",
        json={"operation": "add_tags", "image_ids": [image.id], "tags": ["film", "bw"]},
        headers=editor_headers,
    )
    removed = await client.post(
        "/admin/images/bulk",
        json={"operation": "remove_tags", "image_ids": [image.id], "tags": ["bw"]},
        headers=editor_headers,
    )
    moved = await client.post(
        "/admin/images/bulk",
        json={"operation": "update_category", "image_ids": [image.id], "category_id": target.id},
        headers=editor_headers,
    )

    assert (added.status_code, removed.status_code, moved.status_code) == (200, 200, 200)
    db_session.expire_all()
    refreshed = db_session.get(Image, image.id)
    assert refreshed.tag_list == ["film"]
    assert refreshed.category_id == target.id
    [event] = _events(db_session, "IMAGE_BULK_CATEGORY_UPDATE")
    assert event.details == {"count": 1, "imageIds": [image.id], "categoryName": "Archive"}
    assert len(_events(db_session, "IMAGE_BULK_ADD_TAGS")) == 1
    assert len(_events(db_session, "IMAGE_BULK_REMOVE_TAGS")) == 1


@pytest.mark.anyio
async def test_bulk_payload_validation(client, editor_headers):
    response = await client.post(
        "/admin/images/bulk",
        json={"operation": "update_category", "image_ids": [1]},
        headers=editor_headers,
    )

    assert response.status_code == 422


@pytest.mark.anyio
async def test_category_lifecycle(client, db_session, editor_user, editor_headers, make_image):
    created = await client.post("/categories", json={"name": "Birds"}, headers=editor_headers)
    assert created.status_code == 201
    category_id = created.json()["id"]

    duplicate = await client.post("/categories", json={"name": "Birds"}, headers=editor_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "CATEGORY_EXISTS"

    renamed = await client.put(f"/categories/{category_id}", json={"name": "Wild birds"}, headers=editor_headers)
    assert renamed.status_code == 200
    [update] = _events(db_session, "CATEGORY_UPDATE")
    assert update.details == {"categoryName": "Wild birds", "changes": {"name": "Wild birds"}}

    image = make_image(editor_user, category=db_session.get(Category, category_id))
    in_use = await client.delete(f"/categories/{category_id}", headers=editor_headers)
    assert in_use.status_code == 409
    assert in_use.json()["error"]["code"] == "CATEGORY_IN_USE"

    await client.delete(f"/admin/images/{image.id}", headers=editor_headers)
    deleted = await client.delete(f"/categories/{category_id}", headers=editor_headers)
    assert deleted.status_code == 204
    [delete] = _events(db_session, "CATEGORY_DELETE")
    assert delete.details == {"categoryName": "Wild birds"}


@pytest.mark.anyio
async def test_categories_require_sign_in(client):
    response = await client.get("/categories")

    assert response.status_code == 401
