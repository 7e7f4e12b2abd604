"""
Data models for material lists.

All structured data uses dataclasses for type hints, __eq__, and __repr__.
Field names stay in Spanish because they are the persisted document format
(versiones_materiales is stored as a JSON field on each course).

Timestamps are kept as the ISO strings found in the document so that
version identity (fecha_subida, fecha_actualizacion) compares exactly;
ordering always goes through parse_timestamp().
"""

import copy
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TipoMaterial(str, Enum):
    """Kind of line item on a supply list."""
    UTIL = "util"
    LIBRO = "libro"
    CUADERNO = "cuaderno"
    OTRO = "otro"

    @classmethod
    def coerce(cls, value: Any) -> "TipoMaterial":
        """Map a raw value to a member, defaulting to UTIL."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UTIL
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UTIL


class Disponibilidad(str, Enum):
    """
    Availability of an item against the product catalogs.

    Derived only: written by the availability reconciler, never by edits.
    """
    DISPONIBLE = "disponible"          # Found, stock > 0
    NO_DISPONIBLE = "no_disponible"    # Found, stock <= 0
    NO_ENCONTRADO = "no_encontrado"    # Not found in any catalog

    @classmethod
    def coerce(cls, value: Any) -> Optional["Disponibilidad"]:
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


def now_iso() -> str:
    """Current UTC time as an ISO string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a stored timestamp into an aware datetime.

    Missing or unparseable values sort as the epoch.
    """
    if not value:
        return EPOCH
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false", "no", "n", "falso", "opcional", "optional")
    return bool(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass
class MaterialItem:
    """
    One line item of a supply list snapshot.

    `coordenadas` is an opaque layout hint from ingestion and survives every
    edit untouched. Unknown keys from the document are kept in `extra`.
    """
    id: Any = None
    nombre: str = ""
    tipo: TipoMaterial = TipoMaterial.UTIL
    cantidad: int = 1
    obligatorio: bool = True
    isbn: Optional[str] = None
    marca: Optional[str] = None
    asignatura: Optional[str] = None
    descripcion: Optional[str] = None
    precio: Optional[float] = None
    stock_quantity: Optional[int] = None
    imagen: Optional[str] = None
    disponibilidad: Optional[Disponibilidad] = None
    encontrado_en_woocommerce: bool = False
    woocommerce_id: Any = None
    aprobado: bool = False
    fecha_aprobacion: Optional[str] = None
    coordenadas: Any = None
    orden: Optional[int] = None
    extra: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "MaterialItem":
        known = _known_fields(cls)
        cantidad = _to_int(data.get("cantidad"), 1)
        return cls(
            id=data.get("id"),
            nombre=str(data.get("nombre") or ""),
            tipo=TipoMaterial.coerce(data.get("tipo")),
            cantidad=cantidad if cantidad and cantidad >= 1 else 1,
            obligatorio=_to_bool(data.get("obligatorio"), True),
            isbn=_optional_str(data.get("isbn")),
            marca=_optional_str(data.get("marca")),
            asignatura=_optional_str(data.get("asignatura")),
            descripcion=_optional_str(data.get("descripcion")),
            precio=_to_float(data.get("precio")),
            stock_quantity=_to_int(data.get("stock_quantity")),
            imagen=_optional_str(data.get("imagen")),
            disponibilidad=Disponibilidad.coerce(data.get("disponibilidad")),
            encontrado_en_woocommerce=_to_bool(data.get("encontrado_en_woocommerce"), False),
            woocommerce_id=data.get("woocommerce_id"),
            aprobado=_to_bool(data.get("aprobado"), False),
            fecha_aprobacion=data.get("fecha_aprobacion"),
            coordenadas=copy.deepcopy(data.get("coordenadas")),
            orden=_to_int(data.get("orden")),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict:
        data = copy.deepcopy(self.extra)
        data.update({
            "id": self.id,
            "nombre": self.nombre,
            "tipo": self.tipo.value,
            "cantidad": self.cantidad,
            "obligatorio": self.obligatorio,
            "encontrado_en_woocommerce": self.encontrado_en_woocommerce,
            "aprobado": self.aprobado,
        })
        optional = {
            "isbn": self.isbn,
            "marca": self.marca,
            "asignatura": self.asignatura,
            "descripcion": self.descripcion,
            "precio": self.precio,
            "stock_quantity": self.stock_quantity,
            "imagen": self.imagen,
            "disponibilidad": self.disponibilidad.value if self.disponibilidad else None,
            "woocommerce_id": self.woocommerce_id,
            "fecha_aprobacion": self.fecha_aprobacion,
            "coordenadas": copy.deepcopy(self.coordenadas),
            "orden": self.orden,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass
class MaterialVersion:
    """One dated snapshot of a course's supply list."""
    fecha_subida: Optional[str] = None
    fecha_actualizacion: Optional[str] = None
    pdf_id: Any = None
    pdf_url: Optional[str] = None
    nombre_archivo: Optional[str] = None
    materiales: list[MaterialItem] = field(default_factory=list)
    extra: dict = field(default_factory=dict, repr=False)

    @property
    def stamp(self) -> tuple:
        """Identity of the version inside its history."""
        return (self.fecha_subida, self.fecha_actualizacion)

    @property
    def effective_timestamp(self) -> datetime:
        """fecha_actualizacion if set, else fecha_subida."""
        return parse_timestamp(self.fecha_actualizacion or self.fecha_subida)

    @property
    def has_source_document(self) -> bool:
        return bool(self.pdf_id or self.pdf_url)

    @classmethod
    def from_dict(cls, data: dict) -> "MaterialVersion":
        known = _known_fields(cls)
        return cls(
            fecha_subida=data.get("fecha_subida"),
            fecha_actualizacion=data.get("fecha_actualizacion"),
            pdf_id=data.get("pdf_id"),
            pdf_url=data.get("pdf_url"),
            nombre_archivo=data.get("nombre_archivo"),
            materiales=[MaterialItem.from_dict(m) for m in (data.get("materiales") or []) if isinstance(m, dict)],
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict:
        data = copy.deepcopy(self.extra)
        data["fecha_subida"] = self.fecha_subida
        if self.fecha_actualizacion is not None:
            data["fecha_actualizacion"] = self.fecha_actualizacion
        if self.pdf_id is not None:
            data["pdf_id"] = self.pdf_id
        if self.pdf_url is not None:
            data["pdf_url"] = self.pdf_url
        if self.nombre_archivo is not None:
            data["nombre_archivo"] = self.nombre_archivo
        data["materiales"] = [m.to_dict() for m in self.materiales]
        return data


@dataclass
class Colegio:
    """School reference. Never mutated by this engine."""
    id: Any = None
    document_id: Optional[str] = None
    nombre: str = ""
    rbd: Optional[str] = None
    comuna: Optional[str] = None
    region: Optional[str] = None

    @property
    def key(self) -> str:
        return str(self.document_id or self.id or "")


@dataclass
class Curso:
    """
    A course at a school for one year.

    Owned by the document store; the engine mutates versiones_materiales
    and, best-effort, the revision fields.
    """
    id: Any = None
    document_id: Optional[str] = None
    nombre_curso: str = ""
    nivel: Optional[str] = None
    grado: Any = None
    anio: Optional[int] = None
    matricula: int = 0
    colegio: Optional[Colegio] = None
    estado_revision: Optional[str] = None
    fecha_revision: Optional[str] = None
    activo: Optional[bool] = None
    versiones_materiales: list[MaterialVersion] = field(default_factory=list)
    # Latest (fecha_subida, fecha_actualizacion) as stored when loaded.
    loaded_stamp: Optional[tuple] = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> str:
        """Identifier used for writes: stable key when present."""
        return str(self.document_id or self.id or "")

    def has_list_content(self) -> bool:
        """True if any version has materials or a source document."""
        return any(
            v.materiales or v.has_source_document
            for v in self.versiones_materiales
        )


def _known_fields(cls) -> set[str]:
    return {f.name for f in fields(cls) if f.name != "extra"}


# Fields an edit may never overwrite.
PROTECTED_ITEM_FIELDS = frozenset({"id", "coordenadas", "disponibilidad"})
