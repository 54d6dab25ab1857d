# ─────────────────────────────────────────────────────────────────────────────
# 👤 Users API (uploader directory)
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Body, Depends, Path, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reelvault.core.exceptions import ValidationError
from reelvault.core.limiter import rate_limit
from reelvault.db.session import get_async_db
from reelvault.repositories.users import UserRepository
from reelvault.schemas.users import UserCreate, UserOut
from reelvault.schemas.videos import SuccessOut

router = APIRouter(tags=["Users"])
__all__ = ["router"]


@router.get("/users", response_model=list[UserOut], summary="List users, newest first")
@rate_limit("120/minute")
async def list_users(request: Request, db: AsyncSession = Depends(get_async_db)) -> JSONResponse:
    users = await UserRepository(db).list()
    payload = [UserOut.model_validate(u).model_dump(by_alias=True) for u in users]
    return JSONResponse(content=jsonable_encoder(payload))


@router.post("/users", summary="Create a user")
@rate_limit("30/minute")
async def create_user(
    request: Request,
    payload: UserCreate = Body(...),
    db: AsyncSession = Depends(get_async_db),
) -> JSONResponse:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Name is required", details={"field": "name"})
    user = await UserRepository(db).create(name)
    logger.info("Created user {} ({})", user.id, user.name)
    return JSONResponse(content={"id": user.id, "name": user.name})


@router.delete("/users/{user_id}", response_model=SuccessOut, summary="Delete a user")
@rate_limit("30/minute")
async def delete_user(
    request: Request,
    user_id: str = Path(...),
    db: AsyncSession = Depends(get_async_db),
) -> JSONResponse:
    # Video attribution keeps the uploader name snapshot.
    removed = await UserRepository(db).delete(user_id)
    if removed:
        logger.info("Deleted user {}", user_id)
    return JSONResponse(content=SuccessOut().model_dump())
