"""Script-level tests for the Streamlit app with the Shopify layer patched out."""

from pathlib import Path

import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

from conftest import make_product
from grouping import group_id
from models import Model, SaveResult, ShopifyCollection, ShopifyPage, serialize_gid_list

APP_PATH = str(Path(__file__).resolve().parents[1] / "streamlit_app.py")

FOG_ID = "gid://shopify/Product/501"
NAVY_ID = "gid://shopify/Product/502"


def _amber_products(linked):
    fog = make_product("Amber Japan Fog", id=FOG_ID)
    navy = make_product("Amber Japan Navy", id=NAVY_ID)
    if linked:
        fog.metafields["same_product"] = serialize_gid_list([NAVY_ID])
        navy.metafields["same_product"] = serialize_gid_list([FOG_ID])
    return [fog, navy]


@pytest.fixture
def app(tmp_path):
    st.cache_data.clear()
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.secrets["SHOPIFY_STORE_URL"] = "livid-test.myshopify.com"
    at.secrets["SHOPIFY_ACCESS_TOKEN"] = "shpat_test"
    at.secrets["UI_STATE_PATH"] = str(tmp_path / "ui_state.json")
    yield at
    st.cache_data.clear()


class TestProductsView:

    def test_reference_data_loads_through_parallel_catalog(self, app, monkeypatch):
        """Pages, collections and models come from one load_catalog call."""
        calls = []

        def fake_load_catalog(client, model_store=None, include=()):
            calls.append(tuple(include))
            return {
                "pages": [ShopifyPage("gid://shopify/Page/1", "Amber fitguide", "amber-fitguide")],
                "collections": [ShopifyCollection("gid://shopify/Collection/1", "Denim", "denim")],
                "models": [Model("gid://shopify/Metaobject/1", "anna", name="Anna")],
            }

        monkeypatch.setattr("catalog.fetch_products", lambda client: _amber_products(linked=False))
        monkeypatch.setattr("catalog.load_catalog", fake_load_catalog)

        app.run()

        assert not app.exception
        assert calls == [("pages", "collections", "models")]


class TestGroupsView:

    def test_linking_a_group_refreshes_status(self, app, monkeypatch):
        """After a successful link the view reruns and shows the new status."""
        saved = {"linked": False}

        def fake_save(client, updates):
            saved["linked"] = True
            return SaveResult(success=True, completed=len(updates), total=len(updates))

        monkeypatch.setattr("catalog.fetch_products", lambda client: _amber_products(linked=saved["linked"]))
        monkeypatch.setattr("metafield_writer.save_metafields", fake_save)

        app.run()
        app.radio(key="view").set_value("Groups").run()

        button_key = "link_" + group_id("Livid Jeans", "Jeans", "Amber Japan")
        app.button(key=button_key).click().run()

        assert not app.exception
        assert saved["linked"]
        assert [s.value for s in app.success] == ['Linked 2 products in "Amber Japan"']
        assert button_key not in [b.key for b in app.button]
