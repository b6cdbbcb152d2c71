"""Exception hierarchy for the concept search service.

All application exceptions inherit from :class:`ConceptSearchError`, which
carries an optional ``provider_name`` so error handlers can tell which
collaborator (e.g. "elasticsearch") raised the failure.

The hierarchy follows the error kinds the HTTP layer distinguishes:

    ConceptSearchError  (base -- catch-all for any concept search error)
    +-- RequestValidationError   (bad parameter combination / shape -> 400)
    +-- InputError               (invalid domain value -> 400)
    +-- ConceptNotFoundError     (zero hits where the endpoint requires some -> 404)
    +-- NotAcceptableError       (Accept header excludes JSON -> 406)
    +-- BackendUnavailableError  (no search backend installed / reachable -> 503)
    +-- SearchBackendError       (backend failure or malformed response -> 500)
    +-- ConfigurationError       (startup / missing config)

The mapping from class to HTTP status lives in
:mod:`concept_search.api.middleware` and nowhere else.
"""


class ConceptSearchError(Exception):
    """Base exception for all concept search errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[elasticsearch] search request failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------

class RequestValidationError(ConceptSearchError):
    """Raised for malformed requests: repeated or unknown-valued parameters,
    forbidden parameter combinations, missing or empty required fields."""

    def __init__(
        self,
        message: str = "invalid or missing parameters for concept search",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InputError(ConceptSearchError):
    """Raised for well-formed requests carrying an invalid domain value.

    Examples are an unknown concept type URI, an unsupported combination of
    types, an invalid boost, or too many ids.
    """

    def __init__(
        self,
        message: str = "invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConceptNotFoundError(ConceptSearchError):
    """Raised when a search that must produce hits produced none."""

    def __init__(
        self,
        message: str = "no concepts found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotAcceptableError(ConceptSearchError):
    """Raised when the client's Accept header rules out a JSON response."""

    def __init__(
        self,
        message: str = "not acceptable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Search backend errors
# ---------------------------------------------------------------------------

class BackendUnavailableError(ConceptSearchError):
    """Raised when no search backend handle is installed yet, or the backend
    cannot be reached at all."""

    def __init__(
        self,
        message: str = "no ElasticSearch client available",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SearchBackendError(ConceptSearchError):
    """Raised when the backend answers with an error or an unusable body."""

    def __init__(
        self,
        message: str = "search backend request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class ConfigurationError(ConceptSearchError):
    """Raised for missing or invalid startup configuration."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
