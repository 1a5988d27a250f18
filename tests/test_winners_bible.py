import uuid

import pytest

from mmhealth.core.errors import NotFoundError, RemoteRejectedError
from mmhealth.services.winners_bible import WinnersBibleService, storage_path_for


@pytest.fixture
def service(db, profile, blob_store):
    return WinnersBibleService(db, profile.id, blob_store)


async def _upload(service, *names):
    return [await service.upload_image(name, name.encode(), "image/png") for name in names]


def test_storage_path_sanitizes_the_filename():
    user_id = uuid.UUID("00000000-0000-0000-0000-000000000001")
    path = storage_path_for(user_id, "my photo (1).png", timestamp_ms=1700000000000)
    assert path == f"{user_id}/1700000000000_my_photo__1_.png"


async def test_upload_appends_to_display_order(service, blob_store):
    images = await _upload(service, "a.png", "b.png")

    assert [img.display_order for img in images] == [0, 1]
    assert len(blob_store.blobs) == 2
    assert images[0].url.startswith("https://blobs.test/winners-bible/")


async def test_reorder_assigns_positions(service):
    a, b, c = await _upload(service, "a.png", "b.png", "c.png")

    await service.reorder_images([c.id, a.id, b.id])

    images = await service.get_images()
    assert [img.name for img in images] == ["c.png", "a.png", "b.png"]
    assert [img.display_order for img in images] == [0, 1, 2]


async def test_reorder_rejects_duplicates_and_unknown_ids(service):
    a, b = await _upload(service, "a.png", "b.png")

    with pytest.raises(RemoteRejectedError):
        await service.reorder_images([a.id, a.id])
    with pytest.raises(NotFoundError):
        await service.reorder_images([a.id, uuid.uuid4()])
    assert [img.name for img in await service.get_images()] == ["a.png", "b.png"]


async def test_reorder_empty_list_is_a_noop(service):
    await service.reorder_images([])


async def test_storage_failure_aborts_upload(service, blob_store):
    blob_store.fail_upload = True

    with pytest.raises(RemoteRejectedError, match="Failed to upload image"):
        await service.upload_image("a.png", b"x", "image/png")
    assert await service.get_images() == []


async def test_metadata_failure_removes_uploaded_blob(service, blob_store, monkeypatch):
    async def reject(*args, **kwargs):
        raise RemoteRejectedError("Failed to save image metadata: constraint")

    monkeypatch.setattr(service, "_add", reject)

    with pytest.raises(RemoteRejectedError, match="metadata"):
        await service.upload_image("a.png", b"x", "image/png")
    assert blob_store.blobs == {}
    assert len(blob_store.removed) == 1


async def test_delete_removes_blob_and_row(service, blob_store):
    (image,) = await _upload(service, "a.png")

    await service.delete_image(image.id)

    assert blob_store.blobs == {}
    assert await service.get_images() == []


async def test_delete_proceeds_when_storage_fails(service, blob_store):
    (image,) = await _upload(service, "a.png")
    blob_store.fail_remove = True

    await service.delete_image(image.id)

    assert await service.get_images() == []


async def test_delete_unknown_image_raises(service):
    with pytest.raises(NotFoundError):
        await service.delete_image(uuid.uuid4())
