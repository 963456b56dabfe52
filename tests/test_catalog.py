"""Tests for catalog reads and client-side filtering."""

from unittest.mock import MagicMock

from catalog import (
    ProductFilters,
    facet_values,
    fetch_products,
    filter_products,
    load_catalog,
    resolve_nodes,
)
from conftest import FakeClient, make_product
from queries import NODES_QUERY


def _product_node(i, **overrides):
    node = {
        "id": f"gid://shopify/Product/{i}",
        "title": f"Product {i}",
        "handle": f"product-{i}",
        "vendor": "Livid Jeans",
        "productType": "Jeans",
        "tags": [],
        "status": "ACTIVE",
        "metafields": {"edges": []},
    }
    node.update(overrides)
    return node


class TestFetch:

    def test_fetch_products_converts_nodes(self):
        client = FakeClient(pages={"products": [_product_node(1), _product_node(2)]})
        products = fetch_products(client)

        assert [p.id for p in products] == ["gid://shopify/Product/1", "gid://shopify/Product/2"]
        assert client.paginate_calls == [("products", None, 50)]

    def test_resolve_nodes_batches_of_250(self):
        def nodes(variables):
            return {"nodes": [{"id": i, "alt": "flat"} for i in variables["ids"]]}

        client = FakeClient(responses={NODES_QUERY: nodes})
        ids = [f"gid://shopify/MediaImage/{i}" for i in range(260)]

        resolved = resolve_nodes(client, ids)

        assert [len(v["ids"]) for v in client.calls_for(NODES_QUERY)] == [250, 10]
        assert len(resolved) == 260

    def test_resolve_nodes_keeps_null_slots(self):
        client = FakeClient(responses={NODES_QUERY: {"nodes": [None, {"id": "gid://shopify/MediaImage/1"}]}})
        resolved = resolve_nodes(client, ["gid://shopify/MediaImage/0", "gid://shopify/MediaImage/1"])
        assert resolved[0] is None
        assert resolved[1].id == "gid://shopify/MediaImage/1"

    def test_load_catalog_fetches_everything(self):
        client = FakeClient(pages={
            "products": [_product_node(1)],
            "pages": [{"id": "gid://shopify/Page/1", "title": "Abby fitguide", "handle": "abby-fitguide"}],
            "collections": [{"id": "gid://shopify/Collection/1", "title": "Denim", "handle": "denim"}],
        })
        model_store = MagicMock()
        model_store.list_models.return_value = ["model"]

        catalog = load_catalog(client, model_store=model_store)

        assert len(catalog["products"]) == 1
        assert catalog["pages"][0].handle == "abby-fitguide"
        assert catalog["collections"][0].title == "Denim"
        assert catalog["models"] == ["model"]

    def test_load_catalog_only_fetches_included_parts(self):
        client = FakeClient(pages={
            "pages": [{"id": "gid://shopify/Page/1", "title": "Care denim", "handle": "care-denim"}],
            "collections": [],
        })
        model_store = MagicMock()
        model_store.list_models.return_value = []

        catalog = load_catalog(client, model_store=model_store, include=("pages", "collections", "models"))

        assert set(catalog) == {"pages", "collections", "models"}
        assert "products" not in [root for root, _, _ in client.paginate_calls]
        model_store.list_models.assert_called_once_with()


class TestFilters:

    def _products(self):
        return [
            make_product("Abby Black", vendor="Livid Jeans", tags=["SS26"], status="ACTIVE"),
            make_product("Nelson Slim", vendor="Livid Unisex", product_type="Jeans", status="DRAFT",
                         metafields={"flat": "gid://shopify/MediaImage/1"}),
            make_product("Care Tee", vendor="Other", product_type="T-Shirts", status="ACTIVE"),
        ]

    def test_search_matches_title_handle_vendor(self):
        products = self._products()
        assert [p.title for p in filter_products(products, ProductFilters(search="abby"))] == ["Abby Black"]
        assert [p.title for p in filter_products(products, ProductFilters(search="unisex"))] == ["Nelson Slim"]

    def test_combined_filters(self):
        products = self._products()
        filters = ProductFilters(vendors=["Livid Jeans", "Livid Unisex"], statuses=["ACTIVE"])
        assert [p.title for p in filter_products(products, filters)] == ["Abby Black"]

    def test_tags_and_missing_flat(self):
        products = self._products()
        assert [p.title for p in filter_products(products, ProductFilters(tags=["SS26"]))] == ["Abby Black"]
        missing = filter_products(products, ProductFilters(missing_flat=True))
        assert "Nelson Slim" not in [p.title for p in missing]

    def test_filters_round_trip_through_dict(self):
        filters = ProductFilters(search="x", vendors=["Livid Jeans"], missing_flat=True)
        assert ProductFilters.from_dict(filters.to_dict()) == filters

    def test_from_dict_tolerates_garbage(self):
        assert ProductFilters.from_dict(None) == ProductFilters()
        assert ProductFilters.from_dict({"search": "a", "unknown": 1}).search == "a"

    def test_facet_values(self):
        facets = facet_values(self._products())
        assert facets["vendors"] == ["Livid Jeans", "Livid Unisex", "Other"]
        assert facets["statuses"] == ["ACTIVE", "DRAFT"]
        assert facets["tags"] == ["SS26"]
