"""Image schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ImageCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    category_id: int
    storage_key: str = Field(min_length=1, max_length=255)
    thumbnail_url: str = Field(min_length=1, max_length=500)
    original_url: str = Field(min_length=1, max_length=500)
    file_size: int = Field(ge=0)


class ImageUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    tags: list[str] | None = None
    category_id: int | None = None


class ImageRead(BaseModel):
    id: int
    title: str
    description: str | None
    tags: list[str] = Field(validation_alias="tag_list")
    category_id: int
    uploaded_by_id: int
    storage_key: str
    thumbnail_url: str
    original_url: str
    file_size: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ImageBulkRequest(BaseModel):
    operation: Literal["delete", "update_category", "add_tags", "remove_tags"]
    image_ids: list[int] = Field(min_length=1, max_length=100)
    category_id: int | None = None
    tags: list[str] | None = None

    @model_validator(mode="after")
    def validate_operation_payload(self) -> "ImageBulkRequest":
        if self.operation == "update_category" and self.category_id is None:
            raise ValueError("category_id is required for update_category")
        if self.operation in {"add_tags", "remove_tags"} and not self.tags:
            raise ValueError("tags are required for tag operations")
        return self


class ImageBulkResult(BaseModel):
    operation: str
    affected: int
