"""
FastAPI routes for the course catalog.
Lecturer authoring of courses, chapters, learning objectives and materials,
plus student browsing and enrollment.
"""

from fastapi import APIRouter, UploadFile, File
from typing import Optional
import logging

from services.course_service import CourseService
from models.lms_models import (
    ChapterRequest,
    CourseRequest,
    EnrollRequest,
    LearningObjectiveRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["courses"])

# Initialize services
course_service = CourseService()


# Lecturer Course Endpoints
@router.get("/lecturers/{lecturer_id}/courses")
async def list_lecturer_courses(lecturer_id: str):
    """Courses owned by a lecturer, newest first"""
    courses = course_service.list_lecturer_courses(lecturer_id)
    return {"courses": courses, "total": len(courses)}


@router.post("/lecturers/{lecturer_id}/courses", status_code=201)
async def create_course(lecturer_id: str, request: CourseRequest):
    """Create a course. Name and code are required."""
    course = course_service.create_course(lecturer_id, request)
    return {"success": True, "course": course}


# Course Browsing Endpoints
@router.get("/courses")
async def search_courses(search: Optional[str] = None):
    """
    List all courses for students to browse.

    `search` filters by course name or code, case-insensitive.
    """
    courses = course_service.search_courses(search or "")
    return {"courses": courses, "total": len(courses)}


@router.get("/courses/{course_id}")
async def get_course(course_id: str):
    return {"course": course_service.get_course(course_id)}


@router.put("/courses/{course_id}")
async def update_course(course_id: str, request: CourseRequest):
    course = course_service.update_course(course_id, request)
    return {"success": True, "course": course}


@router.delete("/courses/{course_id}")
async def delete_course(course_id: str):
    course_service.delete_course(course_id)
    return {"success": True}


@router.get("/courses/{course_id}/outline")
async def get_course_outline(course_id: str):
    """Course details with its lecturer and chapters, each listing its learning objectives"""
    return course_service.get_course_outline(course_id)


# Enrollment Endpoints
@router.post("/courses/{course_id}/enrollments", status_code=201)
async def enroll_in_course(course_id: str, request: EnrollRequest):
    enrollment = course_service.enroll(course_id, request.student_id)
    return {"success": True, "enrollment": enrollment}


@router.get("/students/{student_id}/courses")
async def list_enrolled_courses(student_id: str):
    courses = course_service.list_enrolled_courses(student_id)
    return {"courses": courses, "total": len(courses)}


# Chapter Endpoints
@router.get("/courses/{course_id}/chapters")
async def list_chapters(course_id: str):
    """Chapters of a course ordered by order_num"""
    return {"chapters": course_service.list_chapters(course_id)}


@router.post("/courses/{course_id}/chapters", status_code=201)
async def create_chapter(course_id: str, request: ChapterRequest, user_id: str):
    chapter = course_service.create_chapter(course_id, user_id, request)
    return {"success": True, "chapter": chapter}


@router.put("/chapters/{chapter_id}")
async def update_chapter(chapter_id: str, request: ChapterRequest):
    chapter = course_service.update_chapter(chapter_id, request)
    return {"success": True, "chapter": chapter}


@router.delete("/chapters/{chapter_id}")
async def delete_chapter(chapter_id: str):
    course_service.delete_chapter(chapter_id)
    return {"success": True}


# Learning Objective Endpoints
@router.get("/chapters/{chapter_id}/objectives")
async def list_objectives(chapter_id: str):
    return {"learning_objectives": course_service.list_objectives(chapter_id)}


@router.post("/chapters/{chapter_id}/objectives", status_code=201)
async def create_objective(chapter_id: str, request: LearningObjectiveRequest, user_id: str):
    """
    Create a learning objective with its materials.

    Materials missing either a type or a URL are ignored.
    """
    objective = course_service.save_objective(user_id, request, chapter_id=chapter_id)
    return {"success": True, "learning_objective": objective}


@router.get("/objectives/{lo_id}")
async def get_objective(lo_id: str):
    return {"learning_objective": course_service.get_objective(lo_id)}


@router.put("/objectives/{lo_id}")
async def update_objective(lo_id: str, request: LearningObjectiveRequest, user_id: str):
    """Update a learning objective; its materials are replaced by the submitted list."""
    objective = course_service.save_objective(user_id, request, lo_id=lo_id)
    return {"success": True, "learning_objective": objective}


@router.delete("/objectives/{lo_id}")
async def delete_objective(lo_id: str):
    course_service.delete_objective(lo_id)
    return {"success": True}


# Material Endpoints
@router.post("/materials/upload", status_code=201)
async def upload_material(file: UploadFile = File(...)):
    """Upload a material file to storage and return its public URL."""
    data = await file.read()
    material = course_service.upload_material(file.filename or "upload", data, file.content_type)
    return {"success": True, "material": material}
