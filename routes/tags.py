from typing import List

from fastapi import APIRouter, Depends

from db.database import get_db
from models.tag import Tag
from utils.tags import list_tags

router = APIRouter()


@router.get("", response_model=List[Tag])
async def list_all_tags(conn = Depends(get_db)):
    return list_tags(conn)
