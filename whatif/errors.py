"""Exception hierarchy for the analysis pipeline.

Components raise these; the API layer maps them to HTTP responses.
"""


class WhatIfError(Exception):
    """Base class for all analysis pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(WhatIfError):
    """Malformed or missing request fields."""

    status_code = 400


class UpstreamError(WhatIfError):
    """An external API returned a non-success response or was unreachable."""

    status_code = 502

    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class ParseError(WhatIfError):
    """Model output could not be recovered as schema-conforming JSON.

    The offending raw text is logged by the raiser, never attached here.
    """

    status_code = 502


class PersistenceError(WhatIfError):
    """The scenario store failed to write a record."""

    status_code = 500
