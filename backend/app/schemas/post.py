"""
Inkpost Backend — Post Response Schemas
=========================================

What:  Pydantic models for post payloads returned by the API.
How:   Built from ORM rows (from_attributes); keys go out in camelCase
       (createdAt, updatedAt) to match the public contract.

Post bodies arrive as multipart forms, so there is no request model here;
the routes read Form/File fields and hand them to PostService.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PostResponse(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: uuid.UUID = Field(description="Unique post identifier")
    title: str
    category: Optional[str] = Field(default=None, description="Post category")
    description: str
    thumbnail: str = Field(description="Media filename, served under /uploads")
    creator: uuid.UUID = Field(description="Id of the authoring user")
    created_at: datetime
    updated_at: datetime
