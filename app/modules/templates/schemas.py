from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Literal, Union
from typing_extensions import Annotated
from datetime import datetime


class TextElement(BaseModel):
    type: Literal["text"] = "text"
    content: str
    style: Dict[str, str] = Field(default_factory=dict)


class ImageElement(BaseModel):
    type: Literal["image"] = "image"
    placeholder: str


TemplateElement = Annotated[Union[TextElement, ImageElement], Field(discriminator="type")]


class TemplateData(BaseModel):
    """Layout document stored in project_templates.template_data"""
    schema_version: Literal[1] = 1
    width: Optional[str] = None
    height: Optional[str] = None
    elements: List[TemplateElement] = Field(default_factory=list)


def default_template_data() -> TemplateData:
    return TemplateData(elements=[
        TextElement(content="Template Title", style={"fontSize": "24px"}),
        TextElement(content="Template Description", style={"fontSize": "16px"}),
    ])


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    category: str = "general"
    is_public: bool = True
    template_data: Optional[TemplateData] = None


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    category: Optional[str] = None
    is_public: Optional[bool] = None
    template_data: Optional[TemplateData] = None


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    template_data: Optional[TemplateData] = None
    category: str = "general"
    is_public: bool = True
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
