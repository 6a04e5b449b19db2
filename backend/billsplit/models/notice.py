from pydantic import BaseModel, ConfigDict

from billsplit.core.errors import AppError


class Notice(BaseModel):
    """A user-facing message returned with a command result."""
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    item_index: int | None = None

    @classmethod
    def from_error(cls, error: AppError, item_index: int | None = None) -> "Notice":
        return cls(code=error.code, message=error.message, item_index=item_index)
