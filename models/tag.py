from pydantic import BaseModel


class Tag(BaseModel):
    id: int
    name: str
    created_at: str

    class Config:
        from_attributes = True
