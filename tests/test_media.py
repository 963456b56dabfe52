"""Tests for product media and staged uploads."""

from unittest.mock import MagicMock

import pytest

from conftest import FakeClient
from media import (
    UploadFile,
    create_staged_targets,
    fetch_product_media,
    reorder_moves,
    upload_files,
    upload_product_media,
    upload_to_target,
)
from models import StagedTarget
from queries import (
    FILE_CREATE_MUTATION,
    PRODUCT_CREATE_MEDIA_MUTATION,
    PRODUCT_MEDIA_QUERY,
    STAGED_UPLOADS_CREATE_MUTATION,
)
from shopify_client import ShopifyError, UserErrorsError

PRODUCT_ID = "gid://shopify/Product/1"


def _staged(variables):
    return {"stagedUploadsCreate": {
        "stagedTargets": [
            {
                "url": "https://uploads.example/bucket",
                "resourceUrl": f"https://uploads.example/{f['filename']}",
                "parameters": [{"name": "key", "value": f["filename"]}],
            }
            for f in variables["input"]
        ],
        "userErrors": [],
    }}


def _ok_session():
    session = MagicMock()
    session.post.return_value = MagicMock(ok=True)
    return session


class TestUploadFile:

    def test_guesses_mime_type(self):
        assert UploadFile("flat.png", b"123").mime_type == "image/png"
        assert UploadFile("flat.bin", b"").mime_type == "application/octet-stream"
        assert UploadFile("flat.jpg", b"1234", "image/jpeg").size == 4


class TestReorder:

    def test_only_moved_items(self):
        moves = reorder_moves(["a", "b", "c"], ["c", "b", "a"])
        assert moves == [{"id": "c", "newPosition": "0"}, {"id": "a", "newPosition": "2"}]

    def test_unchanged_order(self):
        assert reorder_moves(["a", "b"], ["a", "b"]) == []


class TestMedia:

    def test_fetch_skips_non_image_nodes(self):
        client = FakeClient(responses={PRODUCT_MEDIA_QUERY: {"product": {"media": {"edges": [
            {"node": {"id": "gid://shopify/MediaImage/1", "alt": "front"}},
            {"node": {}},
        ]}}}})
        media = fetch_product_media(client, PRODUCT_ID)
        assert [m.alt for m in media] == ["front"]

    def test_staged_target_input(self):
        client = FakeClient(responses={STAGED_UPLOADS_CREATE_MUTATION: _staged})
        targets = create_staged_targets(client, [UploadFile("flat.jpg", b"12345")])

        [variables] = client.calls_for(STAGED_UPLOADS_CREATE_MUTATION)
        assert variables["input"] == [{
            "filename": "flat.jpg",
            "mimeType": "image/jpeg",
            "resource": "IMAGE",
            "fileSize": "5",
            "httpMethod": "POST",
        }]
        assert targets[0].resource_url == "https://uploads.example/flat.jpg"

    def test_staged_target_user_errors(self):
        client = FakeClient(responses={STAGED_UPLOADS_CREATE_MUTATION: {
            "stagedUploadsCreate": {"stagedTargets": [], "userErrors": [{"message": "Too big"}]},
        }})
        with pytest.raises(UserErrorsError, match="Too big"):
            create_staged_targets(client, [UploadFile("flat.jpg", b"1")])

    def test_upload_to_target_posts_form(self):
        session = _ok_session()
        target = StagedTarget("https://uploads.example/bucket", "https://uploads.example/r", [
            {"name": "key", "value": "abc"}, {"name": "policy", "value": "p"},
        ])

        url = upload_to_target(target, UploadFile("flat.jpg", b"data"), session=session)

        assert url == "https://uploads.example/r"
        args, kwargs = session.post.call_args
        assert args[0] == "https://uploads.example/bucket"
        assert kwargs["data"] == {"key": "abc", "policy": "p"}
        assert kwargs["files"] == {"file": ("flat.jpg", b"data", "image/jpeg")}

    def test_upload_to_target_failure(self):
        session = MagicMock()
        session.post.return_value = MagicMock(ok=False)
        target = StagedTarget("https://uploads.example/bucket", "https://uploads.example/r")
        with pytest.raises(ShopifyError, match="Failed to upload flat.jpg"):
            upload_to_target(target, UploadFile("flat.jpg", b"x"), session=session)

    def test_upload_product_media(self):
        client = FakeClient(responses={
            STAGED_UPLOADS_CREATE_MUTATION: _staged,
            PRODUCT_CREATE_MEDIA_MUTATION: {"productCreateMedia": {
                "media": [{"id": "gid://shopify/MediaImage/7", "alt": ""}], "mediaUserErrors": [],
            }},
        })
        progress = []

        media = upload_product_media(
            client, PRODUCT_ID, [UploadFile("a.jpg", b"1"), UploadFile("b.jpg", b"2")],
            on_progress=lambda c, t: progress.append((c, t)), session=_ok_session(),
        )

        assert [m.id for m in media] == ["gid://shopify/MediaImage/7"]
        assert progress == [(1, 2), (2, 2)]
        [variables] = client.calls_for(PRODUCT_CREATE_MEDIA_MUTATION)
        assert variables["media"] == [
            {"originalSource": "https://uploads.example/a.jpg", "mediaContentType": "IMAGE"},
            {"originalSource": "https://uploads.example/b.jpg", "mediaContentType": "IMAGE"},
        ]

    def test_upload_files_returns_file_ids(self):
        client = FakeClient(responses={
            STAGED_UPLOADS_CREATE_MUTATION: _staged,
            FILE_CREATE_MUTATION: {"fileCreate": {
                "files": [{"id": "gid://shopify/MediaImage/8"}], "userErrors": [],
            }},
        })
        ids = upload_files(client, [UploadFile("flat.jpg", b"1")], session=_ok_session())
        assert ids == ["gid://shopify/MediaImage/8"]
