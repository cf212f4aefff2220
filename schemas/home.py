from pydantic import BaseModel


class HomeRead(BaseModel):
    name: str
    photos: int
    memories: int
    notes: int
