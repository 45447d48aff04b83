import asyncio

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import pytest

from services.media import MediaService, MediaServiceError, UploadItem


def test_upload_route_returns_reference(client, media):
    r = client.post("/api/media/upload", files={"file": ("catatan.pdf", b"%PDF", "application/pdf")})
    assert r.status_code == 200, r.text
    assert r.json() == {
        "url": "https://res.example.com/catatan.pdf",
        "publicId": "submissions/catatan",
        "format": "pdf",
        "resourceType": "raw",
    }
    assert media.uploaded == [("catatan.pdf", "auto")]


def test_upload_route_without_file_is_bad_request(client):
    r = client.post("/api/media/upload")
    assert r.status_code == 400
    assert r.json()["message"] == "Tidak ada file yang diunggah"


def test_upload_route_maps_delegate_failure(client):
    r = client.post("/api/media/upload", files={"file": ("fail.png", b"x", "image/png")})
    assert r.status_code == 500
    assert r.json() == {"message": "Gagal mengunggah file", "code": "server_error"}


def test_delete_route(client, media):
    r = client.request("DELETE", "/api/media/delete", json={"publicId": "submissions/a", "resourceType": "raw"})
    assert r.status_code == 200, r.text
    assert media.deleted == [("submissions/a", "raw")]

    client.request("DELETE", "/api/media/delete", json={"publicId": "submissions/b"})
    assert media.deleted[-1] == ("submissions/b", "image")

    r = client.request("DELETE", "/api/media/delete", json={})
    assert r.status_code == 400
    assert r.json()["message"] == "Public ID diperlukan"


@pytest.fixture()
def sdk_calls(monkeypatch):
    """Configured cloudinary SDK whose network calls are recorded instead of sent."""
    calls = []
    monkeypatch.setattr(cloudinary.config(), "cloud_name", "democloud", raising=False)

    def upload(file, **options):
        calls.append(("upload", file.read(), options))
        return {
            "secure_url": f"https://res.cloudinary.com/democloud/{options['resource_type']}/upload/v1/tugas.pdf",
            "public_id": "tugas",
            "format": "pdf",
            "resource_type": "raw",
        }

    def destroy(public_id, **options):
        calls.append(("destroy", public_id, options))
        return {"result": "ok"}

    monkeypatch.setattr(cloudinary.uploader, "upload", upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", destroy)
    return calls


def test_upload_sends_bytes_with_resource_type(sdk_calls):
    ref = asyncio.run(MediaService().upload(
        UploadItem("tugas.pdf", b"%PDF", "application/pdf"), resource_type="raw"
    ))

    [(kind, sent, options)] = sdk_calls
    assert kind == "upload"
    assert sent == b"%PDF"
    assert options["resource_type"] == "raw"
    assert options["filename"] == "tugas.pdf"
    assert ref.url == "https://res.cloudinary.com/democloud/raw/upload/v1/tugas.pdf"
    assert ref.public_id == "tugas"
    assert ref.resource_type == "raw"


def test_delete_defaults_to_image_resource(sdk_calls):
    service = MediaService()
    assert asyncio.run(service.delete("tugas")) == {"result": "ok"}
    asyncio.run(service.delete("laporan", resource_type="raw"))

    assert [(public_id, options["resource_type"]) for _, public_id, options in sdk_calls] == [
        ("tugas", "image"),
        ("laporan", "raw"),
    ]


def test_sdk_error_becomes_media_service_error(sdk_calls, monkeypatch):
    def refuse(public_id, **options):
        raise cloudinary.exceptions.Error("Invalid Signature")

    monkeypatch.setattr(cloudinary.uploader, "destroy", refuse)
    with pytest.raises(MediaServiceError):
        asyncio.run(MediaService().delete("tugas"))


def test_submission_files_are_split_by_kind(sdk_calls):
    items = [UploadItem("a.pdf", b"1", "application/pdf"), UploadItem("b.png", b"2", "image/png")]
    result = asyncio.run(MediaService().upload_submission_files(items))

    assert sorted(options["resource_type"] for _, _, options in sdk_calls) == ["image", "raw"]
    assert len(result.attachments) == 1 and len(result.images) == 1
    assert result.failed == []


def test_missing_configuration_fails_every_file_without_raising(monkeypatch):
    monkeypatch.setattr(cloudinary.config(), "cloud_name", None, raising=False)
    items = [UploadItem("a.pdf", b"1", "application/pdf"), UploadItem("b.png", b"2", "image/png")]
    result = asyncio.run(MediaService().upload_submission_files(items))
    assert result.failed == ["a.pdf", "b.png"]
    assert result.images == [] and result.attachments == []
