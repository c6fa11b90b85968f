"""Request bodies accepted by the todo routes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class CreateTodoRequest(BaseModel):
    """Request body for POST /todos."""

    # min_length enforces non-empty task text at API boundary.
    task: str = Field(min_length=1)
    completed: bool = False


class UpdateTodoRequest(BaseModel):
    """Request body for PATCH /todos/{id}.

    Every field is optional. A field left out of the JSON body is "not
    supplied" and keeps its stored value; ``model_fields_set`` tells the two
    cases apart, so ``{"completed": false}`` still clears the flag.
    """

    task: str | None = Field(default=None, min_length=1)
    completed: bool | None = None

    @model_validator(mode="after")
    def _reject_explicit_null(self) -> UpdateTodoRequest:
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def supplied_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
