from typing import Any, List, Optional
from pydantic import BaseModel

class ResponseModel(BaseModel):
    """JSON envelope shared by the host API and the exception handler."""
    code: int = 200
    message: str = "success"
    data: Optional[Any] = None

    @staticmethod
    def success(data: Any = None, message: str = "success"):
        return {"code": 200, "message": message, "data": data}

    @staticmethod
    def fail(code: int = 400, message: str = "error", data: Any = None):
        return {"code": code, "message": message, "data": data}

    @staticmethod
    def page(items: List[Any], total: int, offset: int, limit: int):
        return ResponseModel.success(
            data={"items": items, "total": total, "offset": offset, "limit": limit}
        )
