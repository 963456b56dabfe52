import threading

from constants import METAOBJECTS_PER_PAGE, MODEL_FIELD_KEYS, MODEL_TYPE
from logging_config import get_logger
from models import Model
from queries import (
    METAOBJECT_CREATE_MUTATION,
    METAOBJECT_DEFINITION_CREATE_MUTATION,
    METAOBJECT_DELETE_MUTATION,
    METAOBJECT_UPDATE_MUTATION,
    METAOBJECTS_QUERY,
)
from shopify_client import raise_for_user_errors

logger = get_logger(__name__)

MODEL_DEFINITION = {
    "type": MODEL_TYPE,
    "name": "Model",
    "access": {"storefront": "PUBLIC_READ"},
    "fieldDefinitions": [
        {"key": "name", "name": "Name", "type": "single_line_text_field"},
        {"key": "height", "name": "Height", "type": "single_line_text_field"},
        {"key": "size_worn", "name": "Size Worn", "type": "single_line_text_field"},
        {"key": "notes", "name": "Notes", "type": "multi_line_text_field"},
    ],
}


class ModelDefinitionGuard:
    """Creates the "model" metaobject definition at most once.

    One guard lives as long as the app's cached client; ``reset()`` forces the
    next call to check again.
    """

    def __init__(self):
        self._ensured = False
        self._lock = threading.Lock()

    @property
    def ensured(self) -> bool:
        return self._ensured

    def reset(self):
        with self._lock:
            self._ensured = False

    def ensure(self, client):
        if self._ensured:
            return
        with self._lock:
            if self._ensured:
                return
            data = client.execute(METAOBJECT_DEFINITION_CREATE_MUTATION, {"definition": MODEL_DEFINITION})
            errors = data["metaobjectDefinitionCreate"]["userErrors"]
            already_exists = any(
                "already exists" in (e.get("message") or "").lower() or e.get("code") == "TAKEN"
                for e in errors
            )
            if errors and not already_exists:
                logger.error("Failed to create model definition: %s", errors)
                raise_for_user_errors(errors, prefix="Failed to create model definition: ")
            self._ensured = True


def _fields_input(name, height="", size_worn="", notes=""):
    values = {"name": name, "height": height or "", "size_worn": size_worn or "", "notes": notes or ""}
    return [{"key": k, "value": values[k]} for k in MODEL_FIELD_KEYS]


class ModelStore:
    """CRUD for "model" metaobjects (the people wearing the product)."""

    def __init__(self, client, guard=None):
        self.client = client
        self.guard = guard or ModelDefinitionGuard()

    def list_models(self):
        self.guard.ensure(self.client)
        nodes = self.client.paginate(
            METAOBJECTS_QUERY, "metaobjects", variables={"type": MODEL_TYPE}, page_size=METAOBJECTS_PER_PAGE,
        )
        return [Model.from_node(n) for n in nodes]

    def create_model(self, name, height="", size_worn="", notes=""):
        self.guard.ensure(self.client)
        data = self.client.execute(METAOBJECT_CREATE_MUTATION, {
            "metaobject": {"type": MODEL_TYPE, "fields": _fields_input(name, height, size_worn, notes)},
        })
        result = data["metaobjectCreate"]
        raise_for_user_errors(result.get("userErrors"))
        created = result.get("metaobject") or {}
        logger.info("Created model %s", created.get("handle"))
        return created

    def update_model(self, model_id, name, height="", size_worn="", notes=""):
        data = self.client.execute(METAOBJECT_UPDATE_MUTATION, {
            "id": model_id,
            "metaobject": {"fields": _fields_input(name, height, size_worn, notes)},
        })
        raise_for_user_errors(data["metaobjectUpdate"].get("userErrors"))
        return True

    def delete_model(self, model_id):
        data = self.client.execute(METAOBJECT_DELETE_MUTATION, {"id": model_id})
        raise_for_user_errors(data["metaobjectDelete"].get("userErrors"))
        return data["metaobjectDelete"].get("deletedId")
