# Material list versioning and reconciliation engine
# Siloed module - no imports from the HTTP backend

from .models import Colegio, Curso, MaterialVersion, MaterialItem, TipoMaterial, Disponibilidad
from .config import load_config, default_config, Config
from .errors import (
    MaterialListError,
    NotFoundError,
    NoVersionError,
    NothingToApproveError,
    InvalidQueryError,
    InvalidMaterialError,
    ExternalLookupError,
    PersistenceError,
    ConcurrentModificationError,
)
from .adapters import (
    DocumentStore,
    ProductCatalog,
    InternalCatalog,
    InMemoryDocumentStore,
    InMemoryProductCatalog,
    InMemoryInternalCatalog,
)
from .versions import VersionStore, get_latest_version
from .editor import MaterialEditor, EditResult
from .approval import ApprovalWorkflow, ApprovalResult
from .availability import AvailabilityReconciler, ReconcileResult
from .bulk import BulkOperationCoordinator, BulkResult, summarize_bulk
from .search import SchoolListing, SearchIndexer, SearchResult
from .saga import Saga
from .report import format_console, export_csv

__version__ = "1.0.0"

__all__ = [
    # Models
    "Colegio",
    "Curso",
    "MaterialVersion",
    "MaterialItem",
    "TipoMaterial",
    "Disponibilidad",
    # Config
    "Config",
    "load_config",
    "default_config",
    # Errors
    "MaterialListError",
    "NotFoundError",
    "NoVersionError",
    "NothingToApproveError",
    "InvalidQueryError",
    "InvalidMaterialError",
    "ExternalLookupError",
    "PersistenceError",
    "ConcurrentModificationError",
    # Adapters
    "DocumentStore",
    "ProductCatalog",
    "InternalCatalog",
    "InMemoryDocumentStore",
    "InMemoryProductCatalog",
    "InMemoryInternalCatalog",
    # Components
    "VersionStore",
    "get_latest_version",
    "MaterialEditor",
    "EditResult",
    "ApprovalWorkflow",
    "ApprovalResult",
    "AvailabilityReconciler",
    "ReconcileResult",
    "BulkOperationCoordinator",
    "BulkResult",
    "summarize_bulk",
    "SearchIndexer",
    "SearchResult",
    "SchoolListing",
    "Saga",
    # Report
    "format_console",
    "export_csv",
]
