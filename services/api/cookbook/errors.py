"""Error taxonomy for the Cookbook API.

Every error carries an HTTP status and a human-readable message. The
handlers registered in ``main`` turn them into the ``{"error": "..."}``
envelope.
"""


class CookbookError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CookbookError):
    """Malformed input or a violated business rule."""


class MissingHeader(CookbookError):
    def __init__(self, header: str):
        super().__init__(f"Missing required header: {header}")
        self.header = header


class NotFound(CookbookError):
    """Unknown id or archived document. The two cases are reported identically."""

    status_code = 404

    def __init__(self, entity: str, doc_id: str):
        super().__init__(f"{entity.capitalize()} not found: No {entity} with ID '{doc_id}' exists")
        self.entity = entity
        self.doc_id = doc_id


class AccessDenied(CookbookError):
    def __init__(self, entity: str, doc_id: str, owner_group_id: str, duplicate_endpoint: str):
        super().__init__(
            f"Access denied: {entity.capitalize()} '{doc_id}' is owned by group "
            f"'{owner_group_id}'. Only the owning group can modify it. "
            f"Use the {duplicate_endpoint} endpoint to create your own editable copy."
        )
        self.entity = entity
        self.doc_id = doc_id
        self.owner_group_id = owner_group_id
        self.duplicate_endpoint = duplicate_endpoint


class MethodNotAllowed(CookbookError):
    status_code = 405

    def __init__(self, message: str = "Method not allowed: Only POST requests are accepted"):
        super().__init__(message)


class UpstreamFailure(CookbookError):
    """Embedding, image generation or blob storage call failed. Never retried here."""

    def __init__(self, service: str, detail: str):
        super().__init__(f"{service} failed: {detail}")
        self.service = service
        self.detail = detail
