from .base import FormBase
from .state import FormState

__all__ = ["FormBase", "FormState"]
