"""
Pydantic request/response models for the API.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


# ============== Material Items ==============

class AddMaterialRequest(BaseModel):
    nombre: str
    tipo: Optional[str] = None
    cantidad: Optional[int] = None
    obligatorio: Optional[bool] = None
    descripcion: Optional[str] = None
    isbn: Optional[str] = None
    marca: Optional[str] = None
    asignatura: Optional[str] = None
    precio: Optional[float] = None
    orden: Optional[int] = None  # 1-based position, default end of list


class EditMaterialRequest(BaseModel):
    """Partial update. Fields left unset are not touched."""
    nombre: Optional[str] = None
    tipo: Optional[str] = None
    cantidad: Optional[int] = None
    obligatorio: Optional[bool] = None
    descripcion: Optional[str] = None
    isbn: Optional[str] = None
    marca: Optional[str] = None
    asignatura: Optional[str] = None
    precio: Optional[float] = None
    stock_quantity: Optional[int] = None
    extra: Dict[str, Any] = {}


class ReplaceMaterialsRequest(BaseModel):
    materiales: List[Dict[str, Any]]


# ============== Approval ==============

class ApproveMaterialRequest(BaseModel):
    material_id: Optional[Any] = None
    nombre: Optional[str] = None
    index: Optional[int] = None
    aprobado: bool = True


class ApproveListRequest(BaseModel):
    curso_id: str


# ============== Bulk ==============

class BulkUpdateRequest(BaseModel):
    """Course-level patch. Unknown keys are rejected instead of ignored."""
    model_config = ConfigDict(extra="forbid")

    ids: List[Any]
    activo: Optional[Any] = None
    colegio_id: Optional[Any] = Field(None, validation_alias=AliasChoices("colegio_id", "colegioId"))
    anio: Optional[Any] = Field(None, validation_alias=AliasChoices("anio", "año", "ano"))
