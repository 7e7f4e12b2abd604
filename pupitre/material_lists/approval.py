"""
Approval Workflow - Marking items of the latest version as approved.

Item approval is persisted through VersionStore. The course revision
state (estado_revision, fecha_revision) is a separate, best-effort write:
its failure is logged and never undoes the item approval.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .errors import MaterialListError, NotFoundError, NothingToApproveError
from .models import MaterialVersion, now_iso
from .versions import VersionStore, editable_copy, get_latest_version
from .editor import find_item_index

logger = logging.getLogger(__name__)

REVISADO = "revisado"
BORRADOR = "borrador"


@dataclass
class ApprovalResult:
    version: MaterialVersion
    approved: int
    newly_approved: int
    estado_revision: Optional[str] = None
    revision_updated: bool = False


class ApprovalWorkflow:
    """
    Approve all items, or toggle a single one.

    Usage:
        workflow = ApprovalWorkflow(versions)
        result = workflow.approve_all(curso)
    """

    def __init__(self, versions: VersionStore):
        self.versions = versions

    def approve_all(self, curso) -> ApprovalResult:
        """
        Approve every item of the latest version.

        Already approved items keep their fecha_aprobacion, so a second
        call changes nothing.

        Raises:
            NoVersionError: If the course has no versions
            NothingToApproveError: If the latest version has no materials
        """
        version = editable_copy(get_latest_version(curso))
        if not version.materiales:
            raise NothingToApproveError(curso.key)

        now = now_iso()
        newly = 0
        for item in version.materiales:
            if item.aprobado:
                continue
            item.aprobado = True
            item.fecha_aprobacion = now
            newly += 1
        version.fecha_actualizacion = now
        self.versions.replace_latest_version(curso, version)
        logger.info(f"Approved {len(version.materiales)} material(s) of course {curso.key} ({newly} new)")

        updated = self._set_revision(curso, REVISADO)
        return ApprovalResult(
            version=version,
            approved=len(version.materiales),
            newly_approved=newly,
            estado_revision=curso.estado_revision,
            revision_updated=updated,
        )

    def approve_material(
        self,
        curso,
        material_id: Any = None,
        aprobado: bool = True,
        nombre: Optional[str] = None,
        index: Any = None,
    ) -> ApprovalResult:
        """
        Approve or unapprove one item (selected by id, then name, then position).

        Approving stamps fecha_aprobacion unless already approved; unapproving
        clears it. Moves the course to "revisado" once every item is approved,
        and back to "borrador" when an item of a reviewed course is unapproved.

        Raises:
            NotFoundError: If no selector matches
        """
        version = editable_copy(get_latest_version(curso))
        position = find_item_index(version.materiales, material_id, nombre, index)
        if position is None:
            raise NotFoundError("material", material_id if material_id is not None else (nombre or index))

        item = version.materiales[position]
        was_approved = item.aprobado
        now = now_iso()
        if aprobado:
            if not was_approved:
                item.fecha_aprobacion = now
            item.aprobado = True
        else:
            item.aprobado = False
            item.fecha_aprobacion = None
        version.fecha_actualizacion = now
        self.versions.replace_latest_version(curso, version)
        logger.info(f"Material {item.id} of course {curso.key} aprobado={aprobado}")

        all_approved = all(m.aprobado for m in version.materiales)
        updated = False
        if all_approved and curso.estado_revision != REVISADO:
            updated = self._set_revision(curso, REVISADO)
        elif not aprobado and curso.estado_revision == REVISADO:
            updated = self._set_revision(curso, BORRADOR)
        return ApprovalResult(
            version=version,
            approved=sum(1 for m in version.materiales if m.aprobado),
            newly_approved=1 if aprobado and not was_approved else 0,
            estado_revision=curso.estado_revision,
            revision_updated=updated,
        )

    def _set_revision(self, curso, estado: str) -> bool:
        """Best-effort course revision update; False if the write failed."""
        fecha = now_iso()
        try:
            self.versions.patch_curso(curso.key, {"estado_revision": estado, "fecha_revision": fecha})
        except MaterialListError as e:
            logger.warning(f"Could not set estado_revision={estado} on course {curso.key}: {e}")
            return False
        curso.estado_revision = estado
        curso.fecha_revision = fecha
        return True
