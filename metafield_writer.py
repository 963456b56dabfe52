"""Persist metafield edits through metafieldsSet / metafieldsDelete.

Empty values cannot be written to typed reference fields, so they are routed
to metafieldsDelete instead. Both streams go out in batches of at most 25
entries. Failures never abort the run: every error becomes a message in
``SaveResult.errors`` and the remaining batches still go out.
"""

import math

from constants import METAFIELD_BATCH_SIZE
from logging_config import get_logger
from models import SaveResult
from queries import METAFIELDS_DELETE_MUTATION, METAFIELDS_SET_MUTATION
from shopify_client import format_user_errors

logger = get_logger(__name__)


def _chunks(items, size):
    for i in range(0, len(items), size):
        yield items[i:i + size]


def split_inputs(updates):
    """Flatten updates into (set_inputs, delete_identifiers)."""
    sets, deletes = [], []
    for update in updates:
        for mf in update.metafields:
            if mf.value == "":
                deletes.append({"ownerId": update.product_id, "namespace": mf.namespace, "key": mf.key})
            else:
                sets.append({
                    "ownerId": update.product_id,
                    "namespace": mf.namespace,
                    "key": mf.key,
                    "value": mf.value,
                    "type": mf.type,
                })
    return sets, deletes


def save_metafields(client, updates, batch_size=METAFIELD_BATCH_SIZE) -> SaveResult:
    """One save call: all set batches, then all delete batches."""
    sets, deletes = split_inputs(updates)
    errors = []

    for batch in _chunks(sets, batch_size):
        logger.debug("metafieldsSet batch of %d", len(batch))
        try:
            data = client.execute(METAFIELDS_SET_MUTATION, {"metafields": batch})
        except Exception as e:
            logger.warning("metafieldsSet batch failed: %s", e)
            errors.append(f"Failed to save metafields: {e}")
            continue
        errors.extend(format_user_errors(data["metafieldsSet"]["userErrors"]))

    for batch in _chunks(deletes, batch_size):
        logger.debug("metafieldsDelete batch of %d", len(batch))
        try:
            data = client.execute(METAFIELDS_DELETE_MUTATION, {"metafields": batch})
        except Exception as e:
            logger.warning("metafieldsDelete batch failed: %s", e)
            errors.append(f"Failed to clear metafields: {e}")
            continue
        errors.extend(format_user_errors(data["metafieldsDelete"]["userErrors"]))

    return SaveResult(
        success=not errors,
        batches_processed=math.ceil(len(sets) / batch_size) + math.ceil(len(deletes) / batch_size),
        errors=errors,
        completed=len(updates),
        total=len(updates),
        saved_product_ids=[u.product_id for u in updates] if not errors else [],
    )


def save_dirty_cells(
    store,
    client,
    on_progress=None,
    should_cancel=None,
    clear_succeeded=False,
    on_saved=None,
) -> SaveResult:
    """Save everything in ``store``.

    A single product goes out as one call. More than one product is saved one
    product at a time so ``on_progress(completed, total)`` can drive a progress
    bar and ``should_cancel()`` can stop the loop between products. Products
    already written stay written when the loop is cancelled.

    The store is cleared only when every product was saved. With
    ``clear_succeeded`` the cells of products that did save are dropped even
    if others failed.
    """
    updates = store.to_updates()
    total = len(updates)
    if not total:
        return SaveResult(success=True)

    if total == 1:
        try:
            result = save_metafields(client, updates)
        except Exception as e:
            logger.warning("Save failed: %s", e)
            result = SaveResult(success=False, errors=[str(e)], total=1)
        if on_progress:
            on_progress(result.completed, total)
    else:
        result = _save_sequentially(client, updates, on_progress, should_cancel)

    if result.success:
        store.clear()
        logger.info("Saved %d product(s) in %d batch(es)", total, result.batches_processed)
        if on_saved:
            on_saved()
    else:
        logger.warning("Save finished with %d error(s), cancelled=%s", len(result.errors), result.cancelled)
        if clear_succeeded and result.saved_product_ids:
            store.discard_products(result.saved_product_ids)
    return result


def _save_sequentially(client, updates, on_progress, should_cancel) -> SaveResult:
    total = len(updates)
    errors = []
    saved = []
    batches = 0
    completed = 0
    cancelled = False

    for update in updates:
        if should_cancel and should_cancel():
            cancelled = True
            logger.info("Save cancelled after %d/%d products", completed, total)
            break
        try:
            result = save_metafields(client, [update])
            batches += result.batches_processed
            if result.success:
                saved.append(update.product_id)
            else:
                errors.extend(result.errors)
        except Exception as e:
            logger.warning("Save failed for %s: %s", update.product_id, e)
            errors.append(str(e))
        completed += 1
        if on_progress:
            on_progress(completed, total)

    return SaveResult(
        success=not errors and not cancelled,
        batches_processed=batches,
        errors=errors,
        completed=completed,
        total=total,
        cancelled=cancelled,
        saved_product_ids=saved,
    )
