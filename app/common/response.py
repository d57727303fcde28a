# app/common/response.py

import math
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def build_pagination(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }


class SuccessResponse:
    @staticmethod
    def send(data=None, message: Optional[str] = None, pagination: Optional[dict] = None) -> dict:
        response = {"success": True}
        if message is not None:
            response["message"] = message
        response["data"] = data
        if pagination is not None:
            response["pagination"] = pagination
        return response


class ErrorResponse:
    @staticmethod
    def send(message="An error occurred", status_code=500, details: Any = None) -> JSONResponse:
        response = {
            "success": False,
            "message": message,
        }
        if details is not None:
            response["details"] = details
        return JSONResponse(status_code=status_code, content=jsonable_encoder(response))
