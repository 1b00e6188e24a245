# chatcore/exceptions.py

"""
Exception taxonomy for chatcore content generators.

Every error raised by an adapter derives from `GeneratorError`, so the
orchestrator can render any failure to the user without crashing the
interactive session, while still telling the kinds apart:

- `BackendUnavailable`       → the network call could not be made at all
- `BackendError`             → the provider answered with a failure status
- `CapabilityNotImplemented` → the backend deliberately lacks the operation
- `MalformedStreamFragment`  → one streamed line was not valid JSON (recovered locally)
- `UnsupportedBackend`       → the factory could not resolve a backend identity

Nothing here is retried. Failures propagate unmodified so provider
instability stays visible.
"""


class GeneratorError(Exception):
    """
    Base class for all content-generation errors.

    Args:
        detail (str): Human-readable description of the error.
        status_code (int): HTTP-style status code describing the failure class.

    Example:
        raise GeneratorError("Provider not available", status_code=503)
    """
    def __init__(self, detail: str, status_code: int = 500):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class BackendUnavailable(GeneratorError):
    """
    Transport-level failure: connection refused, DNS failure, timeout or abort.
    """
    def __init__(self, detail: str):
        super().__init__(detail, status_code=503)


class BackendError(GeneratorError):
    """
    The provider responded, but with a non-success status.

    Carries the provider's status code, status text and (truncated) body
    verbatim for diagnostics.
    """
    def __init__(self, provider: str, status_code: int, status_text: str = "", body: str = ""):
        self.provider = provider
        self.status_text = status_text
        self.body = body
        detail = f"{provider} API error: {status_code} {status_text}".rstrip()
        if body:
            detail = f"{detail}: {body}"
        super().__init__(detail, status_code=status_code)


class CapabilityNotImplemented(GeneratorError, NotImplementedError):
    """
    The selected backend does not support the requested operation.

    Callers should treat this as a routine capability check, not a crash.
    """
    def __init__(self, backend: str, capability: str):
        self.backend = backend
        self.capability = capability
        super().__init__(f"{capability} is not implemented for the {backend} backend", status_code=501)


class MalformedStreamFragment(GeneratorError, ValueError):
    """
    A single line of a streamed body failed to parse as a JSON object.

    This is the only error kind that is recovered locally: it is logged and
    the line is skipped.
    """
    def __init__(self, line: str, reason: str = ""):
        self.line = line
        preview = line if len(line) <= 120 else line[:117] + "..."
        detail = f"skipping malformed stream fragment: {preview!r}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail, status_code=502)


class UnsupportedBackend(GeneratorError, ValueError):
    """
    No adapter is registered for the configured backend identity.
    """
    def __init__(self, backend: object):
        self.backend = backend
        super().__init__(f"Unsupported backend: {backend!r}", status_code=400)
