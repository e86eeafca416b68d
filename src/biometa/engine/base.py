from pydantic import BaseModel, ConfigDict


class RecordValidator(BaseModel):
    """Base class of the per-field validators driven by the entity registry.

    Validators are configured once and then shared by every worker of a validation
    pass, so they must not keep per-record state.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)


def join_path(parent: str | None, child: str | int) -> str:
    """Extend a field path: ``join_path("terms", 2) == "terms[2]"``, ``join_path("a", "b") == "a.b"``."""
    if isinstance(child, int):
        return f"{parent or ''}[{child}]"
    if not parent:
        return child
    return f"{parent}.{child}"
