from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from reelvault.core.exceptions import (
    PayloadTooLarge,
    PersistenceError,
    QuotaExceeded,
    StorageUnavailable,
    ValidationError,
)
from reelvault.db.models.upload_history import UploadHistoryEntry
from reelvault.db.models.video_metadata import VideoMetadata
from reelvault.repositories.quota import QuotaLedger
from reelvault.services.videos import VideoService
from tests.fixtures.app import make_settings

NOW_MS = 1690000000000


def _service(db_session, s3, **cfg):
    return VideoService(db_session, s3, make_settings(**cfg), clock_ms=lambda: NOW_MS)


async def _ledger_rows(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(UploadHistoryEntry))).scalar_one()


# ─────────────────────────────────────────────────────────────────────────────
# ⬆️ Upload
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_upload_stores_object_metadata_and_ledger(db_session, fake_s3):
    svc = _service(db_session, fake_s3)

    result = await svc.upload(
        b"x" * 100,
        filename="My Trip.mp4",
        content_type="video/mp4",
        uploader_id="u-1",
        uploader_name="Alice",
    )

    assert result.key == f"videos/{NOW_MS}-My_Trip.mp4"
    assert result.url == f"https://cdn.example.com/videos/{NOW_MS}-My_Trip.mp4"
    assert fake_s3.objects[result.key]["content_type"] == "video/mp4"

    row = await db_session.get(VideoMetadata, result.key)
    assert (row.uploader_id, row.uploader_name) == ("u-1", "Alice")
    assert await QuotaLedger(db_session, monthly_limit=1).current_month_usage() == 100


@pytest.mark.anyio
async def test_upload_without_uploader_records_ledger_only(db_session, fake_s3):
    svc = _service(db_session, fake_s3)

    result = await svc.upload(b"abc", filename="clip.mov", uploader_name="Bob")

    assert await db_session.get(VideoMetadata, result.key) is None
    assert await _ledger_rows(db_session) == 1
    assert fake_s3.objects[result.key]["content_type"] == "application/octet-stream"


@pytest.mark.anyio
async def test_upload_missing_file(db_session, fake_s3):
    with pytest.raises(ValidationError) as ei:
        await _service(db_session, fake_s3).upload(None, filename=None)
    assert ei.value.message == "No file uploaded"
    assert fake_s3.calls == []


@pytest.mark.anyio
async def test_upload_too_large(db_session, fake_s3):
    svc = _service(db_session, fake_s3, MAX_UPLOAD_BYTES=10)
    with pytest.raises(PayloadTooLarge):
        await svc.upload(b"x" * 11, filename="big.mp4")
    assert fake_s3.calls == []
    assert await _ledger_rows(db_session) == 0


@pytest.mark.anyio
async def test_upload_over_quota_leaves_ledger_unchanged(db_session, fake_s3):
    svc = _service(db_session, fake_s3, MONTHLY_QUOTA_BYTES=10)

    await svc.upload(b"x" * 3, filename="a.mp4")
    with pytest.raises(QuotaExceeded):
        await svc.upload(b"x" * 8, filename="b.mp4")

    assert await svc.ledger.current_month_usage() == 3
    assert await _ledger_rows(db_session) == 1
    assert [c[0] for c in fake_s3.calls] == ["put"]


@pytest.mark.anyio
async def test_upload_without_storage(db_session):
    with pytest.raises(StorageUnavailable):
        await _service(db_session, None).upload(b"x", filename="a.mp4")
    assert await _ledger_rows(db_session) == 0


@pytest.mark.anyio
async def test_upload_put_failure_writes_nothing(db_session, fake_s3):
    fake_s3.fail("put")
    with pytest.raises(StorageUnavailable):
        await _service(db_session, fake_s3).upload(b"x", filename="a.mp4", uploader_id="u", uploader_name="U")
    assert await _ledger_rows(db_session) == 0
    assert (await db_session.execute(select(func.count()).select_from(VideoMetadata))).scalar_one() == 0


@pytest.mark.anyio
async def test_upload_db_failure_removes_object(db_session, fake_s3, monkeypatch):
    svc = _service(db_session, fake_s3)

    def _boom(size, *, at=None):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(svc.ledger, "record", _boom)

    with pytest.raises(PersistenceError) as ei:
        await svc.upload(b"x", filename="a.mp4")
    key = f"videos/{NOW_MS}-a.mp4"
    assert ei.value.details == {"key": key}
    assert key not in fake_s3.objects
    assert fake_s3.calls[-1] == ("delete", key)


# ─────────────────────────────────────────────────────────────────────────────
# 📄 Listing
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_list_filters_extensions_and_joins_uploader(db_session, fake_s3):
    fake_s3.seed("videos/1-a.mp4", b"aaaa", last_modified=datetime(2024, 2, 3, 4, 5, 6, tzinfo=timezone.utc))
    fake_s3.seed("videos/2-b.MKV", b"bb")
    fake_s3.seed("videos/notes.txt")
    fake_s3.seed("legacy/c.webm")
    db_session.add(VideoMetadata(video_key="videos/1-a.mp4", uploader_id="u-1", uploader_name="Alice"))
    await db_session.commit()

    videos = await _service(db_session, fake_s3).list_videos()

    assert [v.key for v in videos] == ["videos/1-a.mp4", "videos/2-b.MKV", "legacy/c.webm"]
    first = videos[0].model_dump(by_alias=True)
    assert first == {
        "key": "videos/1-a.mp4",
        "name": "1-a.mp4",
        "size": 4,
        "lastModified": "2024-02-03T04:05:06+00:00",
        "url": "https://cdn.example.com/videos/1-a.mp4",
        "uploader": "Alice",
    }
    assert videos[1].uploader == "Unknown"
    assert videos[2].name == "c.webm"
    assert fake_s3.calls == [("list",)]


@pytest.mark.anyio
async def test_list_without_public_url_returns_empty_url(db_session, fake_s3):
    fake_s3.public_base = ""
    fake_s3.seed("videos/1-a.mp4")
    videos = await _service(db_session, fake_s3).list_videos()
    assert videos[0].url == ""


@pytest.mark.anyio
async def test_list_storage_failure(db_session, fake_s3):
    fake_s3.fail("list")
    with pytest.raises(StorageUnavailable) as ei:
        await _service(db_session, fake_s3).list_videos()
    assert "Failed to connect to object storage" in ei.value.message


@pytest.mark.anyio
async def test_list_without_storage(db_session):
    with pytest.raises(StorageUnavailable):
        await _service(db_session, None).list_videos()


# ─────────────────────────────────────────────────────────────────────────────
# 🗑️ Delete
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_delete_removes_object_and_metadata(db_session, fake_s3):
    fake_s3.seed("videos/1-a.mp4")
    db_session.add(VideoMetadata(video_key="videos/1-a.mp4", uploader_id="u", uploader_name="U"))
    await db_session.commit()

    await _service(db_session, fake_s3).delete("videos/1-a.mp4")

    assert "videos/1-a.mp4" not in fake_s3.objects
    assert await db_session.get(VideoMetadata, "videos/1-a.mp4") is None


@pytest.mark.anyio
async def test_delete_twice_succeeds(db_session, fake_s3):
    fake_s3.seed("videos/1-a.mp4")
    svc = _service(db_session, fake_s3)
    await svc.delete("videos/1-a.mp4")
    await svc.delete("videos/1-a.mp4")
    assert fake_s3.calls == [("delete", "videos/1-a.mp4"), ("delete", "videos/1-a.mp4")]


@pytest.mark.anyio
async def test_delete_not_found_from_store_still_clears_metadata(db_session, fake_s3):
    fake_s3.fail("delete", not_found=True)
    db_session.add(VideoMetadata(video_key="videos/gone.mp4", uploader_id="u", uploader_name="U"))
    await db_session.commit()

    await _service(db_session, fake_s3).delete("videos/gone.mp4")
    assert await db_session.get(VideoMetadata, "videos/gone.mp4") is None


@pytest.mark.anyio
async def test_delete_rejects_key_outside_namespace(db_session, fake_s3):
    with pytest.raises(ValidationError):
        await _service(db_session, fake_s3).delete("secrets/a.mp4")
    assert fake_s3.calls == []


@pytest.mark.anyio
async def test_delete_store_error_keeps_metadata(db_session, fake_s3):
    fake_s3.seed("videos/1-a.mp4")
    fake_s3.fail("delete")
    db_session.add(VideoMetadata(video_key="videos/1-a.mp4", uploader_id="u", uploader_name="U"))
    await db_session.commit()

    with pytest.raises(StorageUnavailable):
        await _service(db_session, fake_s3).delete("videos/1-a.mp4")
    assert await db_session.get(VideoMetadata, "videos/1-a.mp4") is not None
