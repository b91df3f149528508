from pydantic import BaseModel


class BulkUploadResponse(BaseModel):
    total_rows: int
    inserted: int
    failed: int
    errors: list[str] = []
