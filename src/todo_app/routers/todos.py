from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Path, Request, Response, status

from ..models import ID_MAX, ID_MIN
from ..repositories import Repository
from ..schemas import ErrorOut, MessageOut, TodoCreate, TodoOut

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

NOT_FOUND_MESSAGE = "Todo item not found."

TodoId = Annotated[int, Path(ge=ID_MIN, le=ID_MAX, description="Todo item id")]


# PUBLIC_INTERFACE
def get_repository(request: Request) -> Repository:
    """
    Dependency returning the repository the application was built with.
    """
    repo = getattr(request.app.state, "repository", None)
    if repo is None:
        raise RuntimeError("Application has no repository configured")
    return repo


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List all todos: incomplete first, newest first within each group.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_todos(repo: Repository = Depends(get_repository)) -> List[TodoOut]:
    """
    List every stored todo item.
    """
    return [TodoOut.model_validate(item) for item in repo.list_all()]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"model": ErrorOut, "description": "Title missing or blank"},
    },
)
def create_todo(payload: TodoCreate, response: Response, repo: Repository = Depends(get_repository)) -> TodoOut:
    """
    Create a new Todo. The Location header points at the new item.
    """
    created = repo.add(payload.title)
    response.headers["Location"] = f"/todos/{created['id']}"
    return TodoOut.model_validate(created)


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/complete",
    response_model=MessageOut,
    summary="Complete Todo",
    description="Mark a Todo item as completed. Completing an already completed item succeeds.",
    responses={
        200: {"description": "Todo completed"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def complete_todo(todo_id: TodoId, repo: Repository = Depends(get_repository)) -> MessageOut:
    if not repo.mark_completed(todo_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
    return MessageOut(message="Todo item marked as completed.")


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def delete_todo(todo_id: TodoId, repo: Repository = Depends(get_repository)) -> Response:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    if not repo.delete(todo_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
