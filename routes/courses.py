from fastapi import APIRouter, Depends, HTTPException

from db.database import get_db
from models.course import CourseCreate
from storage.courses import create_course, get_course, join_course, list_course_members, list_courses, list_user_courses
from utils.auth import require_user
from utils.serialize import to_api

router = APIRouter()

@router.get("")
async def courses_index(conn = Depends(get_db)):
    return to_api(list_courses(conn))

@router.get("/my")
async def my_courses(user_id: int = Depends(require_user), conn = Depends(get_db)):
    return to_api(list_user_courses(conn, user_id))

@router.post("")
async def new_course(payload: CourseCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    return to_api(create_course(conn, payload.model_dump()))

@router.post("/{course_id}/join")
async def join(course_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    if not get_course(conn, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    try:
        join_course(conn, user_id, course_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"message": "Joined course successfully"}

@router.get("/{course_id}/members")
async def members(course_id: int, conn = Depends(get_db)):
    if not get_course(conn, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    return to_api(list_course_members(conn, course_id))
