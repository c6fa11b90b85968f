"""Storage models shared by API and persistence backends."""

from pydantic import BaseModel


class Todo(BaseModel):
    """Persisted todo record."""

    id: int
    task: str
    completed: bool = False
