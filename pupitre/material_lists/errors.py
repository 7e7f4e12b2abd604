"""
Material list errors.

Every engine failure derives from MaterialListError so the HTTP layer
can map the whole family in one place.
"""


class MaterialListError(RuntimeError):
    """Base class for material list engine failures."""


class NotFoundError(MaterialListError):
    """Raised when a course, or a material inside its latest version, is missing."""
    def __init__(self, what: str, key=None):
        message = f"{what} not found" if key is None else f"{what} not found: {key}"
        super().__init__(message)
        self.what = what
        self.key = key


class NoVersionError(MaterialListError):
    """Raised when a course exists but has no material versions yet."""
    def __init__(self, curso_key=None):
        super().__init__(f"Course {curso_key} has no material versions")
        self.curso_key = curso_key


class NothingToApproveError(MaterialListError):
    """Raised when the latest version has no materials to approve."""
    def __init__(self, curso_key=None):
        super().__init__(f"Course {curso_key} has no materials to approve")
        self.curso_key = curso_key


class InvalidQueryError(MaterialListError, ValueError):
    """Raised when a search query is too short to run."""
    def __init__(self, query: str, min_length: int):
        super().__init__(f"Search query must have at least {min_length} characters")
        self.query = query
        self.min_length = min_length


class ExternalLookupError(MaterialListError):
    """Raised by catalog adapters when a remote lookup fails."""
    def __init__(self, source: str, term: str, cause: Exception | None = None):
        super().__init__(f"{source} lookup failed for '{term}': {cause}")
        self.source = source
        self.term = term
        self.cause = cause


class PersistenceError(MaterialListError):
    """Raised when writing a course back to the document store fails."""
    def __init__(self, curso_key, cause: Exception | None = None):
        super().__init__(f"Could not persist course {curso_key}: {cause}")
        self.curso_key = curso_key
        self.cause = cause


class ConcurrentModificationError(PersistenceError):
    """Raised when the latest version changed between read and write."""
    def __init__(self, curso_key, expected, found):
        MaterialListError.__init__(
            self,
            f"Course {curso_key} was modified concurrently "
            f"(expected latest {expected}, found {found})"
        )
        self.curso_key = curso_key
        self.cause = None
        self.expected = expected
        self.found = found


class InvalidMaterialError(MaterialListError, ValueError):
    """Raised when a new or imported material is missing required fields."""
    def __init__(self, reason: str):
        super().__init__(f"Invalid material: {reason}")
        self.reason = reason
