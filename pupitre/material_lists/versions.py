"""
Version Store - Latest-snapshot selection and history writes.

A course's versiones_materiales is an append-only history stored as one
JSON field. Reads pick the latest snapshot; writes either replace it in
place (same count) or prepend a new one (count + 1).

Latest selection:
| Key                                         | Rule              |
|---------------------------------------------|-------------------|
| fecha_actualizacion, else fecha_subida      | maximal instant   |
| identical instants                          | first listed wins |

Writes re-read the course and compare the latest (fecha_subida,
fecha_actualizacion) pair with the one the caller loaded. A mismatch
means someone else wrote in between and raises ConcurrentModificationError.
Writes for one course are also serialized in-process.
"""

import copy
import logging
import threading
from typing import Any, Optional

from .adapters import DocumentStore
from .config import Config
from .errors import ConcurrentModificationError, NotFoundError, NoVersionError, PersistenceError
from .mapping import curso_from_entity, versions_to_payload
from .models import Curso, MaterialVersion

logger = logging.getLogger(__name__)

CURSOS = "cursos"
COLEGIOS = "colegios"
CURSO_POPULATE = ["colegio"]


def get_latest_version(curso: Curso) -> MaterialVersion:
    """
    Pick the latest version of a course.

    Raises:
        NoVersionError: If the history is empty
    """
    latest = _latest_index(curso.versiones_materiales)
    if latest is None:
        raise NoVersionError(curso.key)
    return curso.versiones_materiales[latest]


def find_latest_version(curso: Curso) -> Optional[MaterialVersion]:
    """Like get_latest_version, but None for an empty history."""
    latest = _latest_index(curso.versiones_materiales)
    return curso.versiones_materiales[latest] if latest is not None else None


def _latest_index(versions: list[MaterialVersion]) -> Optional[int]:
    best = None
    for i, version in enumerate(versions):
        # Strict comparison keeps the first listed on ties.
        if best is None or version.effective_timestamp > versions[best].effective_timestamp:
            best = i
    return best


def latest_stamp(curso: Curso) -> Optional[tuple]:
    latest = find_latest_version(curso)
    return latest.stamp if latest is not None else None


class VersionStore:
    """
    Reads courses and writes their version history through a DocumentStore.

    Usage:
        versions = VersionStore(store)
        curso = versions.load_curso("abc123")
        latest = versions.get_latest_version(curso)
    """

    def __init__(self, store: DocumentStore, config: Optional[Config] = None):
        self.store = store
        self.config = config or Config()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def load_curso(self, curso_id: Any) -> Curso:
        """
        Resolve a course by stable key first, then numeric key.

        Raises:
            NotFoundError: If neither resolves
        """
        entity = self.find_curso_entity(curso_id)
        if entity is None:
            raise NotFoundError("curso", curso_id)
        curso = curso_from_entity(entity)
        curso.loaded_stamp = latest_stamp(curso)
        return curso

    def find_curso_entity(self, curso_id: Any) -> Optional[dict]:
        key = str(curso_id).strip()
        if not key:
            return None
        entity = self.store.get(CURSOS, {"documentId": key}, populate=CURSO_POPULATE)
        if entity is None and key.isdigit():
            entity = self.store.get(CURSOS, {"id": int(key)}, populate=CURSO_POPULATE)
        return entity

    def get_latest_version(self, curso: Curso) -> MaterialVersion:
        return get_latest_version(curso)

    def replace_latest_version(self, curso: Curso, updated: MaterialVersion) -> Curso:
        """
        Replace the latest version with `updated`.

        The old latest is matched by its timestamp pair, so callers that
        stamped a copy still drop the right entry. Version count is unchanged.

        Raises:
            NoVersionError: If the history is empty
            ConcurrentModificationError: If the stored latest changed since load
            PersistenceError: If the document write fails
        """
        old_stamp = get_latest_version(curso).stamp
        remaining = list(curso.versiones_materiales)
        for i, version in enumerate(remaining):
            if version.stamp == old_stamp:
                del remaining[i]
                break
        history = [updated] + remaining
        self._write_history(curso, history, old_stamp)
        return curso

    def append_version(self, curso: Curso, new: MaterialVersion) -> Curso:
        """Prepend a new version; count grows by exactly one."""
        history = [new] + list(curso.versiones_materiales)
        self._write_history(curso, history, latest_stamp(curso))
        return curso

    def patch_curso(self, curso_key: Any, data: dict) -> dict:
        """
        Write course-level fields (revision state, activation, ...).

        Raises:
            PersistenceError: If the document write fails
        """
        try:
            return self.store.put(CURSOS, curso_key, data)
        except Exception as e:
            raise PersistenceError(curso_key, e) from e

    def _write_history(self, curso: Curso, history: list[MaterialVersion], expected: Optional[tuple]):
        key = curso.key
        if curso.loaded_stamp is not None:
            expected = curso.loaded_stamp
        with self._lock_for(key):
            if self.config.concurrency_check:
                self._check_unchanged(curso, expected)
            payload = {"versiones_materiales": versions_to_payload(Curso(versiones_materiales=history))}
            try:
                self.store.put(CURSOS, key, payload)
            except Exception as e:
                logger.error(f"Failed to persist versions for course {key}: {e}")
                raise PersistenceError(key, e) from e
        curso.versiones_materiales = history
        curso.loaded_stamp = latest_stamp(curso)
        logger.info(f"Persisted {len(history)} version(s) for course {key}")

    def _check_unchanged(self, curso: Curso, expected: Optional[tuple]):
        entity = self.find_curso_entity(curso.key)
        if entity is None:
            raise NotFoundError("curso", curso.key)
        found = latest_stamp(curso_from_entity(entity))
        if found != expected:
            logger.warning(f"Course {curso.key} changed since load: expected {expected}, found {found}")
            raise ConcurrentModificationError(curso.key, expected, found)

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]


def editable_copy(version: MaterialVersion) -> MaterialVersion:
    """Deep copy of a version, safe to mutate before a replace."""
    return copy.deepcopy(version)
