"""Errors raised by graph commands."""
from enum import Enum

from pydantic import ValidationError as PydanticValidationError


class StructuralErrorKind(str, Enum):
    SELF_LOOP = "SelfLoop"
    DUPLICATE = "Duplicate"
    INCOMPATIBLE_KINDS = "IncompatibleKinds"
    INPUT_HAS_INCOMING = "InputHasIncoming"
    OUTPUT_HAS_OUTGOING = "OutputHasOutgoing"
    CREATES_CYCLE = "CreatesCycle"


class StructuralError(Exception):
    """An edge was rejected; the graph is left unmodified."""

    def __init__(self, kind: StructuralErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


class ConfigError(Exception):
    """A layer config (or manual shape) is outside its valid domain."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invalid layer config: {errors}")

    @classmethod
    def from_validation(cls, kind: str, exc: PydanticValidationError) -> "ConfigError":
        errors = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err["loc"]) or "config"
            errors.append(f"{kind}.{loc}: {err['msg']}")
        return cls(errors)


class NodeNotFoundError(KeyError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Unknown layer id: {node_id}")
