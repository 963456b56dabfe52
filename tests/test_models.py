"""Tests for domain types and GID helpers."""

from models import (
    FileNode,
    MediaItem,
    Model,
    Product,
    SaveResult,
    extract_id,
    parse_gid_list,
    serialize_gid_list,
)
from constants import METAFIELD_KEYS


class TestGidHelpers:

    def test_parse_gid_list(self):
        assert parse_gid_list('["gid://shopify/Product/1","gid://shopify/Product/2"]') == [
            "gid://shopify/Product/1",
            "gid://shopify/Product/2",
        ]

    def test_parse_gid_list_malformed(self):
        assert parse_gid_list("") == []
        assert parse_gid_list(None) == []
        assert parse_gid_list("gid://shopify/Product/1") == []
        assert parse_gid_list('{"a": 1}') == []

    def test_serialize_is_compact(self):
        assert serialize_gid_list(["gid://shopify/Product/1", "gid://shopify/Product/2"]) == (
            '["gid://shopify/Product/1","gid://shopify/Product/2"]'
        )
        assert serialize_gid_list([]) == "[]"

    def test_extract_id(self):
        assert extract_id("gid://shopify/Product/123") == "123"
        assert extract_id("") == ""

    def test_codec_round_trips_non_string_items(self):
        assert parse_gid_list("[1,2]") == [1, 2]
        assert serialize_gid_list(parse_gid_list("[1,2]")) == "[1,2]"


class TestProduct:

    def test_every_metafield_key_present(self):
        p = Product(id="gid://shopify/Product/1", title="Abby", metafields={"details": "x", "bogus": "y"})
        assert set(p.metafields) == set(METAFIELD_KEYS)
        assert p.metafields["details"] == "x"
        assert p.metafields["fitguide"] == ""

    def test_from_node(self):
        node = {
            "id": "gid://shopify/Product/1",
            "title": "Abby Black",
            "handle": "abby-black",
            "vendor": "Livid Jeans",
            "productType": "Jeans",
            "tags": ["SS26"],
            "status": "DRAFT",
            "featuredImage": {"url": "https://cdn/x.jpg"},
            "mediaCount": {"count": 4},
            "metafields": {"edges": [
                {"node": {"namespace": "custom", "key": "care", "value": "gid://shopify/Page/2"}},
                {"node": {"namespace": "other", "key": "care", "value": "ignored"}},
                {"node": {"namespace": "custom", "key": "details", "value": None}},
            ]},
        }
        p = Product.from_node(node)

        assert p.product_type == "Jeans"
        assert p.status == "DRAFT"
        assert p.featured_image == "https://cdn/x.jpg"
        assert p.media_count == 4
        assert p.metafields["care"] == "gid://shopify/Page/2"
        assert p.metafields["details"] == ""


class TestOtherTypes:

    def test_model_info_text(self):
        model = Model.from_node({
            "id": "gid://shopify/Metaobject/1",
            "handle": "anna",
            "fields": [{"key": "name", "value": "Anna"}, {"key": "height", "value": "175 cm"},
                       {"key": "size_worn", "value": "27/32"}],
        })
        assert model.name == "Anna"
        assert model.notes == ""
        assert model.info_text == "Model is 175 cm tall and wearing a size 27/32"

    def test_file_node_null(self):
        assert FileNode.from_node(None) is None
        assert FileNode.from_node({}) is None

    def test_media_thumbnail_prefers_preview(self):
        item = MediaItem.from_node({
            "id": "gid://shopify/MediaImage/1",
            "image": {"url": "https://cdn/full.jpg"},
            "preview": {"image": {"url": "https://cdn/small.jpg"}},
        })
        assert item.thumbnail_url == "https://cdn/small.jpg"

    def test_save_result_summary(self):
        assert SaveResult(success=True).summary(1) == "Saved 1 change"
        failed = SaveResult(success=False, errors=["a: bad", "b: worse"])
        assert failed.summary(2) == "Some updates failed: a: bad, b: worse"
