from collections import namedtuple

from constants import MEDIA_COLUMNS_KEY, UNISEX_VENDOR, VISIBLE_COLUMNS_KEY

# render_type: text | ref_product | ref_page | ref_collection | ref_metaobject | ref_file
ColumnDef = namedtuple("ColumnDef", ["key", "label", "render_type", "default_visible", "vendor_only"])

COLUMN_DEFINITIONS = [
    ColumnDef("short_description", "Short Description", "text", True, None),
    ColumnDef("full_description", "Full Description", "text", True, None),
    ColumnDef("details", "Details", "text", True, None),
    ColumnDef("flat", "Flat", "ref_file", False, None),
    ColumnDef("care", "Care", "ref_page", False, None),
    ColumnDef("fitguide", "Fit Guide", "ref_page", False, None),
    ColumnDef("model_info", "Model Info", "ref_metaobject", False, None),
    ColumnDef("recommended_collection", "Rec. Collection", "ref_collection", False, None),
    ColumnDef("same_product", "Same Product", "ref_product", True, None),
    ColumnDef("style_with", "Style With", "ref_product", True, None),
    ColumnDef("style_with_unisex_herre", "Style With (Herre)", "ref_product", False, UNISEX_VENDOR),
    ColumnDef("style_with_unisex_dame", "Style With (Dame)", "ref_product", False, UNISEX_VENDOR),
]

COLUMNS_BY_KEY = {c.key: c for c in COLUMN_DEFINITIONS}
DEFAULT_VISIBLE_KEYS = [c.key for c in COLUMN_DEFINITIONS if c.default_visible]

MediaColumnDef = namedtuple("MediaColumnDef", ["key", "label", "default_visible", "vendor_only"])

MEDIA_COLUMN_DEFINITIONS = [
    MediaColumnDef("product_media", "Product Media", True, None),
    MediaColumnDef("men_images", "Men Images", True, UNISEX_VENDOR),
    MediaColumnDef("women_images", "Women Images", True, UNISEX_VENDOR),
]


def applies_to(column, product) -> bool:
    """Vendor-restricted columns are read-only for other vendors."""
    return column.vendor_only is None or product.vendor == column.vendor_only


class ColumnVisibility:
    """Visible column keys, remembered in the persisted UI state."""

    def __init__(self, state, storage_key=VISIBLE_COLUMNS_KEY, definitions=COLUMN_DEFINITIONS):
        self.state = state
        self.storage_key = storage_key
        self.definitions = list(definitions)
        self._valid = [c.key for c in self.definitions]
        self.definitions_by_key = {c.key: c for c in self.definitions}
        self.visible_keys = self._load()

    @property
    def defaults(self):
        return [c.key for c in self.definitions if c.default_visible]

    def _load(self):
        stored = self.state.get(self.storage_key)
        if not isinstance(stored, list):
            return self.defaults
        return [k for k in self._valid if k in stored]

    def _save(self):
        self.state.set(self.storage_key, list(self.visible_keys))

    @property
    def visible_columns(self):
        return [c for c in self.definitions if c.key in self.visible_keys]

    def set_visible(self, keys):
        self.visible_keys = [k for k in self._valid if k in set(keys)]
        self._save()

    def reset_to_defaults(self):
        self.set_visible(self.defaults)

    def show_all(self):
        self.set_visible(self._valid)


def media_column_visibility(state):
    return ColumnVisibility(state, storage_key=MEDIA_COLUMNS_KEY, definitions=MEDIA_COLUMN_DEFINITIONS)
