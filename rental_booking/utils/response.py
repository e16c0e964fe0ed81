from typing import Generic, TypeVar, List, Optional, Dict
from pydantic import BaseModel

T = TypeVar("T")

class ErrorDetail(BaseModel):
    code: str
    field: Optional[str] = None
    message: str

class PaginationMeta(BaseModel):
    page: int
    pageSize: int
    totalRecords: int
    totalPages: int

class MetaData(BaseModel):
    pagination: Optional[PaginationMeta] = None
    filters: Optional[Dict] = None

class ApiResponse(BaseModel, Generic[T]):
    success: bool
    statusCode: int
    message: str
    data: Optional[T]
    meta: Optional[MetaData] = None
    errors: Optional[List[ErrorDetail]] = None


def success_response(data, message="Success", meta=None, status_code=200):
    return ApiResponse(
        success=True,
        statusCode=status_code,
        message=message,
        data=data,
        meta=meta,
        errors=None,
    )

def error_response(message, errors, status_code=400):
    return ApiResponse(
        success=False,
        statusCode=status_code,
        message=message,
        data=None,
        meta=None,
        errors=errors,
    )


def pagination_meta(page: int, page_size: int, total: int, filters: Dict | None = None) -> MetaData:
    total_pages = (total + page_size - 1) // page_size if page_size else 0
    return MetaData(
        pagination=PaginationMeta(
            page=page,
            pageSize=page_size,
            totalRecords=total,
            totalPages=total_pages,
        ),
        filters=filters or None,
    )
