from enum import Enum


class FormState(Enum):
    """The operation a form performs next."""

    CREATE = "create"
    EDIT = "edit"
    COPY = "copy"
    DELETE = "delete"
    DELETED = "deleted"

    @property
    def can_save(self) -> bool:
        return self in (FormState.CREATE, FormState.EDIT, FormState.COPY)
