"""
Bulk Operation Coordinator - Course-level patches across many ids.

Ids are processed one at a time. A failure for one id is recorded in its
result and the loop continues; nothing already written is rolled back.

Recognized patch fields:
| Patch key            | Written as                           |
|----------------------|--------------------------------------|
| activo               | activo (bool)                        |
| colegio_id/colegioId | colegio: {"connect": [numeric id]}   |
| anio/año             | anio (int)                           |
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from .errors import MaterialListError, NotFoundError
from .mapping import unwrap
from .models import _to_bool, _to_int
from .versions import COLEGIOS, VersionStore

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    id: Any
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"id": self.id, "success": self.success}
        if self.error is not None:
            data["error"] = self.error
        return data


def _first_present(patch: dict, *keys: str) -> tuple[bool, Any]:
    for key in keys:
        if key in patch and patch[key] is not None:
            return True, patch[key]
    return False, None


class BulkOperationCoordinator:
    """
    Applies one patch to many courses.

    Usage:
        bulk = BulkOperationCoordinator(versions)
        results = bulk.apply_bulk(["abc", "42"], {"activo": False})
    """

    def __init__(self, versions: VersionStore):
        self.versions = versions

    def build_update(self, patch: dict) -> dict:
        """
        Translate a patch into document fields.

        Raises:
            NotFoundError: If the target school cannot be resolved
        """
        data = {}
        present, activo = _first_present(patch, "activo")
        if present:
            data["activo"] = _to_bool(activo, True)
        present, colegio = _first_present(patch, "colegio_id", "colegioId")
        if present:
            data["colegio"] = {"connect": [self.resolve_colegio_id(colegio)]}
        present, anio = _first_present(patch, "anio", "año")
        if present:
            value = _to_int(anio)
            if value is not None:
                data["anio"] = value
        return data

    def resolve_colegio_id(self, key: Any) -> int:
        """Numeric school id for a numeric or opaque key."""
        if isinstance(key, int) and not isinstance(key, bool):
            return key
        text = str(key).strip()
        if text.isdigit():
            return int(text)
        entity = self.versions.store.get(COLEGIOS, {"documentId": text})
        numeric = _to_int(unwrap(entity).get("id")) if entity else None
        if numeric is None:
            raise NotFoundError("colegio", text)
        return numeric

    def apply_bulk(
        self,
        ids: list[Any],
        patch: dict,
        cancel: Optional[threading.Event] = None,
    ) -> list[BulkResult]:
        """
        Apply `patch` to every id.

        Returns:
            One BulkResult per processed id; fewer than len(ids) if cancelled
        """
        results: list[BulkResult] = []
        update_error = None
        try:
            update = self.build_update(patch)
        except MaterialListError as e:
            update, update_error = None, str(e)

        if update is not None and not update:
            logger.info(f"Bulk patch has no recognized fields; {len(ids)} id(s) left untouched")
            return [BulkResult(id=i, success=True) for i in ids]

        for curso_id in ids:
            if cancel is not None and cancel.is_set():
                logger.warning(f"Bulk update cancelled after {len(results)} of {len(ids)} id(s)")
                break
            results.append(self._apply_one(curso_id, update, update_error))

        failed = sum(1 for r in results if not r.success)
        logger.info(f"Bulk update: {len(results) - failed} succeeded, {failed} failed")
        return results

    def _apply_one(self, curso_id: Any, update: Optional[dict], update_error: Optional[str]) -> BulkResult:
        try:
            entity = self.versions.find_curso_entity(curso_id)
        except Exception as e:
            logger.error(f"Bulk: lookup of course {curso_id} failed: {e}")
            return BulkResult(id=curso_id, success=False, error=str(e))
        if entity is None:
            return BulkResult(id=curso_id, success=False, error="not found")
        if update is None:
            return BulkResult(id=curso_id, success=False, error=update_error)

        data = unwrap(entity)
        key = data.get("documentId") or data.get("id")
        try:
            self.versions.patch_curso(key, update)
        except MaterialListError as e:
            logger.error(f"Bulk: update of course {curso_id} failed: {e}")
            return BulkResult(id=curso_id, success=False, error=str(e))
        return BulkResult(id=curso_id, success=True)


def summarize_bulk(results: list[BulkResult]) -> dict:
    """Counts for a bulk run."""
    successful = sum(1 for r in results if r.success)
    return {
        "total": len(results),
        "successful": successful,
        "failed": len(results) - successful,
    }
