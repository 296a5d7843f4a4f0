from typing import Literal, Optional
from pydantic import BaseModel

OpStatus = Literal["ok", "unauthenticated", "storage_error", "rejected", "stale"]

class OpResult(BaseModel):
    """
    Outcome of a state-changing store operation.
    Stores never raise into callers; they report through this instead.
    """
    ok: bool
    status: OpStatus
    notice: Optional[str] = None
    model_config = {"frozen": True}

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, notice: Optional[str] = None) -> "OpResult":
        return cls(ok=True, status="ok", notice=notice)

    @classmethod
    def failure(cls, status: OpStatus, notice: Optional[str] = None) -> "OpResult":
        return cls(ok=False, status=status, notice=notice)
