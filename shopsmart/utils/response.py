from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from typing import Any, Optional


def success(
    data: Optional[Any] = None,
    message: str = "Success",
):
    # Ensure datetimes, dates, Decimals, etc. are JSON-serializable.
    return jsonable_encoder({
        "success": True,
        "message": message,
        "data": data,
    })


def error(
    message: str = "Error",
    status_code: int = 400,
    headers: Optional[dict] = None,
):
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=headers,
    )
