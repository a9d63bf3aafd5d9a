__all__ = ("ReplayCacheError", "NotSupportedError", "HijackedError")


class ReplayCacheError(Exception): ...


class NotSupportedError(ReplayCacheError):
    """The underlying response writer does not provide the requested capability."""


class HijackedError(ReplayCacheError):
    """The connection was taken over and the writer can no longer be used."""
