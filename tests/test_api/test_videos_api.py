import pytest

from reelvault.db.models.video_metadata import VideoMetadata
from reelvault.repositories.quota import QuotaLedger
from tests.fixtures.app import TEST_MAX_UPLOAD_BYTES, TEST_MONTHLY_QUOTA_BYTES

OLD = "videos/1690000000-clip.mp4"


# ─────────────────────────────────────────────────────────────────────────────
# 📄 GET /api/videos
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_list_videos(async_client, fake_s3, db_session):
    fake_s3.seed(OLD, b"12345")
    fake_s3.seed("videos/readme.txt")
    db_session.add(VideoMetadata(video_key=OLD, uploader_id="u-1", uploader_name="Alice"))
    await db_session.commit()

    r = await async_client.get("/api/videos")

    assert r.status_code == 200
    body = r.json()
    assert len(body) == 1
    assert body[0]["key"] == OLD
    assert body[0]["name"] == "1690000000-clip.mp4"
    assert body[0]["size"] == 5
    assert body[0]["uploader"] == "Alice"
    assert body[0]["url"] == f"https://cdn.example.com/{OLD}"
    assert "lastModified" in body[0]


@pytest.mark.anyio
async def test_list_videos_storage_not_configured(app, async_client):
    app.state.s3_client = None

    r = await async_client.get("/api/videos")

    assert r.status_code == 500
    body = r.json()
    assert body["type"] == "StorageUnavailable"
    assert "not configured" in body["error"]
    assert body["request_id"] == r.headers["x-request-id"]


# ─────────────────────────────────────────────────────────────────────────────
# ⬆️ POST /api/upload
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_upload_video(async_client, fake_s3, db_session):
    r = await async_client.post(
        "/api/upload",
        files={"video": ("my clip.mp4", b"x" * 100, "video/mp4")},
        data={"uploaderId": "u-1", "uploaderName": "Alice"},
    )

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["key"].startswith("videos/") and body["key"].endswith("-my_clip.mp4")
    assert body["url"] == f"https://cdn.example.com/{body['key']}"
    assert fake_s3.objects[body["key"]]["content_type"] == "video/mp4"
    assert (await db_session.get(VideoMetadata, body["key"])).uploader_name == "Alice"


@pytest.mark.anyio
async def test_upload_accepts_file_field(async_client, fake_s3):
    r = await async_client.post("/api/upload", files={"file": ("a.webm", b"abc", "video/webm")})
    assert r.status_code == 200, r.text
    assert r.json()["key"].endswith("-a.webm")


@pytest.mark.anyio
async def test_upload_without_file(async_client, fake_s3):
    r = await async_client.post("/api/upload", data={"uploaderId": "u-1"})
    assert r.status_code == 400
    assert r.json()["error"] == "No file uploaded"
    assert fake_s3.calls == []


@pytest.mark.anyio
async def test_upload_too_large(async_client, fake_s3):
    r = await async_client.post(
        "/api/upload",
        files={"video": ("big.mp4", b"x" * (TEST_MAX_UPLOAD_BYTES + 1), "video/mp4")},
    )
    assert r.status_code == 400
    assert r.json()["type"] == "PayloadTooLarge"
    assert fake_s3.objects == {}


@pytest.mark.anyio
async def test_upload_over_quota(async_client, fake_s3, db_session):
    ledger = QuotaLedger(db_session, monthly_limit=TEST_MONTHLY_QUOTA_BYTES)
    ledger.record(TEST_MONTHLY_QUOTA_BYTES - 10)
    await db_session.commit()

    r = await async_client.post("/api/upload", files={"video": ("a.mp4", b"x" * 11, "video/mp4")})

    assert r.status_code == 400
    body = r.json()
    assert body["type"] == "QuotaExceeded"
    assert body["error"].startswith("Monthly upload quota exceeded")
    assert fake_s3.objects == {}


@pytest.mark.anyio
async def test_upload_storage_failure(async_client, fake_s3):
    fake_s3.fail("put")
    r = await async_client.post("/api/upload", files={"video": ("a.mp4", b"x", "video/mp4")})
    assert r.status_code == 500
    assert r.json()["type"] == "StorageUnavailable"


# ─────────────────────────────────────────────────────────────────────────────
# ✏️ PATCH /api/videos/{key}
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_rename_video(async_client, fake_s3):
    fake_s3.seed(OLD)

    r = await async_client.patch(f"/api/videos/{OLD}", json={"newName": "My Clip!!"})

    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "key": "videos/My_Clip__.mp4"}
    assert set(fake_s3.objects) == {"videos/My_Clip__.mp4"}


@pytest.mark.anyio
async def test_rename_with_encoded_key(async_client, fake_s3):
    fake_s3.seed(OLD)
    r = await async_client.patch("/api/videos/videos%2F1690000000-clip.mp4", json={"newName": "x"})
    assert r.status_code == 200, r.text
    assert r.json()["key"] == "videos/x.mp4"


@pytest.mark.anyio
async def test_rename_missing_name(async_client, fake_s3):
    fake_s3.seed(OLD)
    r = await async_client.patch(f"/api/videos/{OLD}", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"
    assert fake_s3.calls == []


@pytest.mark.anyio
async def test_rename_outside_namespace(async_client, fake_s3):
    r = await async_client.patch("/api/videos/other/a.mp4", json={"newName": "b"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid key"


@pytest.mark.anyio
async def test_rename_missing_video(async_client, fake_s3):
    r = await async_client.patch(f"/api/videos/{OLD}", json={"newName": "x"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid key"
    assert r.json()["type"] == "ValidationError"


@pytest.mark.anyio
async def test_rename_onto_existing_video(async_client, fake_s3):
    fake_s3.seed(OLD, b"mine")
    fake_s3.seed("videos/x.mp4", b"theirs")

    r = await async_client.patch(f"/api/videos/{OLD}", json={"newName": "x"})

    assert r.status_code == 400
    assert r.json()["details"]["new_key"] == "videos/x.mp4"
    assert fake_s3.objects["videos/x.mp4"]["data"] == b"theirs"
    assert fake_s3.objects[OLD]["data"] == b"mine"


@pytest.mark.anyio
async def test_delete_video_with_unusual_key(async_client, fake_s3):
    fake_s3.seed("videos//clip.mp4")
    fake_s3.seed("videos/clip.mp4")

    r = await async_client.delete("/api/videos/videos//clip.mp4")

    assert r.status_code == 200
    assert set(fake_s3.objects) == {"videos/clip.mp4"}


@pytest.mark.anyio
async def test_rename_failure_reports_saga_state(async_client, fake_s3):
    fake_s3.seed(OLD)
    fake_s3.fail("delete", OLD)

    r = await async_client.patch(f"/api/videos/{OLD}", json={"newName": "x"})

    assert r.status_code == 500
    assert r.json()["details"] == {"state": "ROLLED_BACK", "old_key": OLD, "new_key": "videos/x.mp4"}


# ─────────────────────────────────────────────────────────────────────────────
# 🗑️ DELETE /api/videos/{key}
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_delete_video_twice(async_client, fake_s3):
    fake_s3.seed(OLD)

    first = await async_client.delete(f"/api/videos/{OLD}")
    second = await async_client.delete(f"/api/videos/{OLD}")

    assert first.status_code == 200 and first.json() == {"success": True}
    assert second.status_code == 200 and second.json() == {"success": True}
    assert fake_s3.objects == {}


@pytest.mark.anyio
async def test_delete_outside_namespace(async_client, fake_s3):
    r = await async_client.delete("/api/videos/other/a.mp4")
    assert r.status_code == 400
    assert r.json()["type"] == "ValidationError"
    assert fake_s3.calls == []
