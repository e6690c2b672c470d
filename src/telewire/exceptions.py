"""Exception taxonomy for telewire."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .config import Config


class TelewireError(Exception):
    """Base class for every error raised by telewire."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidIdentifierError(TelewireError, ValueError):
    """Raised when a `type[/name]` identifier does not parse."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"invalid identifier {text!r}: {reason}")
        self.text = text
        self.reason = reason


class AttributeDecodeError(TelewireError, ValueError):
    """Raised when an attribute value node cannot be decoded."""


class UnsupportedTagError(AttributeDecodeError):
    """The node carries a tag the attribute decoder does not handle."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"unexpected tag {tag}")
        self.tag = tag


class UnsupportedShapeError(AttributeDecodeError):
    """The node is neither a scalar nor a sequence."""

    def __init__(self, shape: str) -> None:
        super().__init__(f"unsupported value shape: {shape}")
        self.shape = shape


class ConfigError(TelewireError):
    """The configuration document has the wrong overall shape."""


class ComponentError(TelewireError):
    """Base for errors attributed to a single component identifier."""

    def __init__(self, identifier: str, detail: str) -> None:
        super().__init__(f'"{identifier}": {detail}')
        self.identifier = identifier


class UnknownTypeError(ComponentError):
    def __init__(self, identifier: str) -> None:
        super().__init__(identifier, "unknown type")


class ComponentDecodeError(ComponentError):
    """A registered decoder rejected the component's fields."""

    def __init__(self, identifier: str, cause: BaseException) -> None:
        super().__init__(identifier, str(cause))
        self.cause = cause


class AggregateError(TelewireError):
    """Several independent failures reported together under one tag."""

    def __init__(self, tag: str, errors: Iterable[BaseException]) -> None:
        self.tag = tag
        self.errors = list(errors)
        lines = [f"{tag}: {err}" for err in self.errors]
        super().__init__("\n".join(lines))


class ConfigDecodeError(TelewireError):
    """Some processor or exporter entries failed to decode.

    The partially decoded configuration is available as ``config``; every
    entry that decoded successfully is present in it.
    """

    def __init__(self, errors: Iterable[AggregateError], config: "Config") -> None:
        self.errors = list(errors)
        self.config = config
        super().__init__("\n".join(str(err) for err in self.errors))


class ProviderNotFoundError(ComponentError, LookupError):
    def __init__(self, identifier: str) -> None:
        super().__init__(identifier, "provider not found")


class ExporterNotFoundError(ComponentError, LookupError):
    def __init__(self, identifier: str) -> None:
        super().__init__(identifier, "exporter not found")


class ProcessorNotFoundError(ComponentError, LookupError):
    def __init__(self, identifier: str) -> None:
        super().__init__(identifier, "processor not found")


class ConstructionError(ComponentError):
    """An exporter, processor contribution or provider failed to build."""

    def __init__(self, identifier: str, cause: BaseException | str) -> None:
        super().__init__(identifier, str(cause))
        self.cause = cause


class StartError(ComponentError):
    """A deferred start failed; already started exporters were rolled back.

    Attributes:
        cause: The exception raised by the failing start.
        rollback_errors: Errors raised while shutting down the exporters
            started earlier in the same call.
    """

    def __init__(
        self,
        identifier: str,
        cause: BaseException,
        rollback_errors: Iterable[BaseException] = (),
    ) -> None:
        self.cause = cause
        self.rollback_errors = list(rollback_errors)
        detail = f"start: {cause}"
        if self.rollback_errors:
            detail += "; rollback: " + "; ".join(str(err) for err in self.rollback_errors)
        super().__init__(identifier, detail)


class ComponentShutdownError(ComponentError):
    def __init__(self, identifier: str, cause: BaseException) -> None:
        super().__init__(identifier, str(cause))
        self.cause = cause


class ShutdownError(AggregateError):
    """One or more components failed to shut down."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        super().__init__("shutdown", errors)
