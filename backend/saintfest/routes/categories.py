from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from saintfest.services.category_catalog import list_categories

router = APIRouter()


class CategoryOut(BaseModel):
    key: str
    name: str
    color: str


@router.get("/categories", response_model=List[CategoryOut])
def get_categories():
    """Known saint categories, in catalog order"""
    return [CategoryOut(key=c.key, name=c.name, color=c.color) for c in list_categories()]
