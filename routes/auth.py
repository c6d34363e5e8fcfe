import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from db.database import get_db
from models.user import LoginCredentials, UserCreate
from storage.users import authenticate_user, create_user, email_exists, get_user
from utils.auth import (
    clear_session_cookie,
    create_session,
    destroy_session,
    get_session_cookie_name,
    require_user,
    set_session_cookie,
)
from utils.serialize import to_api

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_response(conn, user: dict) -> JSONResponse:
    token = create_session(conn, user["id"])
    response = JSONResponse({"user": to_api(user)})
    set_session_cookie(response, token)
    return response


@router.post("/register")
async def register(payload: UserCreate, conn = Depends(get_db)):
    if email_exists(conn, payload.email):
        raise HTTPException(status_code=400, detail="User already exists")
    try:
        user = create_user(conn, payload.model_dump())
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info("Registered user %s", user["id"])
    return _session_response(conn, user)


@router.post("/login")
async def login(payload: LoginCredentials, conn = Depends(get_db)):
    user = authenticate_user(conn, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _session_response(conn, user)


@router.post("/logout")
async def logout(request: Request, conn = Depends(get_db)):
    destroy_session(conn, request.cookies.get(get_session_cookie_name()))
    response = JSONResponse({"message": "Logged out"})
    clear_session_cookie(response)
    return response


@router.get("/me")
async def me(user_id: int = Depends(require_user), conn = Depends(get_db)):
    user = get_user(conn, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": to_api(user)}
