from collections import namedtuple

# =========================
# Metafield definitions
# =========================
METAFIELD_NAMESPACE = "custom"

UNISEX_VENDOR = "Livid Unisex"
LIVID_VENDORS = ("Livid Jeans", "Livid Unisex")

# Newest first
SEASON_TAGS = ("SS26",)

MetafieldDefinition = namedtuple(
    "MetafieldDefinition", ["key", "namespace", "label", "type", "description"]
)

METAFIELD_DEFINITIONS = [
    MetafieldDefinition("short_description", METAFIELD_NAMESPACE, "Short Description",
                        "multi_line_text_field", "Brief product description for listings"),
    MetafieldDefinition("full_description", METAFIELD_NAMESPACE, "Full Description",
                        "multi_line_text_field", "Detailed product description"),
    MetafieldDefinition("details", METAFIELD_NAMESPACE, "Details",
                        "multi_line_text_field", "Product details and specifications"),
    MetafieldDefinition("same_product", METAFIELD_NAMESPACE, "Same Product",
                        "list.product_reference", "References to the same product in different colors"),
    MetafieldDefinition("style_with", METAFIELD_NAMESPACE, "Style With",
                        "list.product_reference", "Products to style/pair with this one"),
    MetafieldDefinition("flat", METAFIELD_NAMESPACE, "Flat",
                        "file_reference", "Flat lay image file reference"),
    MetafieldDefinition("care", METAFIELD_NAMESPACE, "Care",
                        "page_reference", "Care instructions page reference"),
    MetafieldDefinition("fitguide", METAFIELD_NAMESPACE, "Fit Guide",
                        "page_reference", "Fit guide page reference"),
    MetafieldDefinition("model_info", METAFIELD_NAMESPACE, "Model Info",
                        "single_line_text_field", "Model information text (generated from the model picker)"),
    MetafieldDefinition("recommended_collection", METAFIELD_NAMESPACE, "Recommended Collection",
                        "collection_reference", "Recommended collection reference"),
    MetafieldDefinition("style_with_unisex_herre", METAFIELD_NAMESPACE, "Style With (Herre)",
                        "list.product_reference", "Unisex style-with for men"),
    MetafieldDefinition("style_with_unisex_dame", METAFIELD_NAMESPACE, "Style With (Dame)",
                        "list.product_reference", "Unisex style-with for women"),
    MetafieldDefinition("men_images", METAFIELD_NAMESPACE, "Men Images",
                        "list.file_reference", "Men images for unisex products"),
    MetafieldDefinition("women_images", METAFIELD_NAMESPACE, "Women Images",
                        "list.file_reference", "Women images for unisex products"),
]

METAFIELD_KEYS = [d.key for d in METAFIELD_DEFINITIONS]
DEFINITIONS_BY_KEY = {d.key: d for d in METAFIELD_DEFINITIONS}

# =========================
# Upstream limits
# =========================
PRODUCTS_PER_PAGE = 50
PAGES_PER_PAGE = 100
COLLECTIONS_PER_PAGE = 100
METAOBJECTS_PER_PAGE = 50
PRODUCT_MEDIA_LIMIT = 100

METAFIELD_BATCH_SIZE = 25
NODES_BATCH_SIZE = 250

# Bulk apply asks for a second confirmation at this many products
LARGE_SELECTION_THRESHOLD = 50

# =========================
# Model metaobjects
# =========================
MODEL_TYPE = "model"
MODEL_FIELD_KEYS = ("name", "height", "size_worn", "notes")

# =========================
# Persisted UI state keys
# =========================
VISIBLE_COLUMNS_KEY = "metafield-manager:visible-columns"
PRODUCT_FILTERS_KEY = "metafield-manager:product-filters"
MEDIA_COLUMNS_KEY = "metafield-manager:media-visible-columns"
