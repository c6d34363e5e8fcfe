from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from db.database import get_db
from models.forum import PostCreate, ReplyCreate, VoteCreate
from storage.forum import (
    apply_vote,
    category_exists,
    create_post,
    create_reply,
    get_post,
    list_categories,
    list_posts,
    post_exists,
    reply_exists,
)
from utils.auth import require_user
from utils.serialize import to_api

router = APIRouter()

@router.get("/categories")
async def categories(conn = Depends(get_db)):
    return to_api(list_categories(conn))

@router.get("/posts")
async def posts_index(
    categoryId: Optional[int] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    conn = Depends(get_db),
):
    return to_api(list_posts(conn, category_id=categoryId, limit=limit))

@router.get("/posts/{post_id}")
async def post_detail(post_id: int, conn = Depends(get_db)):
    post = get_post(conn, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return to_api(post)

@router.post("/posts")
async def new_post(payload: PostCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    if payload.category_id is not None and not category_exists(conn, payload.category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return to_api(create_post(conn, user_id, payload.model_dump()))

@router.post("/posts/{post_id}/replies")
async def new_reply(post_id: int, payload: ReplyCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    if not post_exists(conn, post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    return to_api(create_reply(conn, user_id, post_id, payload.content))

@router.post("/posts/{post_id}/vote")
async def vote_post(post_id: int, payload: VoteCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    if not post_exists(conn, post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    counts = apply_vote(conn, "post", user_id, post_id, payload.vote_type.value)
    return {"message": "Vote recorded", **to_api(counts)}

@router.post("/replies/{reply_id}/vote")
async def vote_reply(reply_id: int, payload: VoteCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    if not reply_exists(conn, reply_id):
        raise HTTPException(status_code=404, detail="Reply not found")
    counts = apply_vote(conn, "reply", user_id, reply_id, payload.vote_type.value)
    return {"message": "Vote recorded", **to_api(counts)}
