"""
Course catalog service.
Lecturer-side authoring of courses, chapters, learning objectives and
materials; student-side browsing, enrollment and course outlines.
"""

import logging
from typing import Dict, Any, Optional, List
from datetime import datetime

from clients.supabase_client import (
    get_course_by_id,
    list_courses_by_lecturer,
    list_all_courses,
    list_courses_by_ids,
    insert_course,
    update_course,
    delete_course,
    insert_enrollment,
    get_enrolled_course_ids,
    get_user_by_id,
    get_chapter_by_id,
    get_chapters_by_course,
    insert_chapter,
    update_chapter,
    delete_chapter,
    get_learning_objective,
    get_learning_objectives_by_chapters,
    insert_learning_objective,
    update_learning_objective,
    delete_learning_objective,
    get_materials_by_objective,
    replace_materials,
    upload_material_file,
)
from models.lms_models import (
    ChapterRequest,
    CourseRequest,
    LearningObjectiveRequest,
)
from utils.exceptions import NotFoundError, ValidationError
from utils.file_storage import build_material_path, generate_uuid

logger = logging.getLogger(__name__)


class CourseService:
    """Catalog operations over courses, chapters and learning objectives"""

    # Courses

    def list_lecturer_courses(self, lecturer_id: str) -> List[Dict[str, Any]]:
        return list_courses_by_lecturer(lecturer_id)

    def search_courses(self, search: str = "") -> List[Dict[str, Any]]:
        """All courses whose name or code contains the search term, case-insensitive"""
        courses = list_all_courses()
        term = search.strip().lower()
        if not term:
            return courses
        return [
            c for c in courses
            if term in (c.get("name") or "").lower() or term in (c.get("code") or "").lower()
        ]

    def get_course(self, course_id: str) -> Dict[str, Any]:
        course = get_course_by_id(course_id)
        if not course:
            raise NotFoundError(f"Course {course_id} not found", error_code="COURSE_NOT_FOUND")
        return course

    def create_course(self, lecturer_id: str, request: CourseRequest) -> Dict[str, Any]:
        if not request.name.strip() or not request.code.strip():
            raise ValidationError("Please fill in all required fields: name and code")
        course = insert_course({
            "id": generate_uuid(),
            "name": request.name,
            "code": request.code,
            "description": request.description,
            "lecturer_id": lecturer_id,
            "created_at": datetime.now().isoformat(),
        })
        logger.info(f"Created course {course['id']} ({request.code}) for lecturer {lecturer_id}")
        return course

    def update_course(self, course_id: str, request: CourseRequest) -> Dict[str, Any]:
        if not request.name.strip() or not request.code.strip():
            raise ValidationError("Please fill in all required fields: name and code")
        updated = update_course(course_id, {
            "name": request.name,
            "code": request.code,
            "description": request.description,
        })
        if not updated:
            raise NotFoundError(f"Course {course_id} not found", error_code="COURSE_NOT_FOUND")
        return updated

    def delete_course(self, course_id: str) -> None:
        delete_course(course_id)
        logger.info(f"Deleted course {course_id}")

    # Enrollments

    def enroll(self, course_id: str, student_id: str) -> Dict[str, Any]:
        self.get_course(course_id)
        if course_id in get_enrolled_course_ids(student_id):
            raise ValidationError("Already enrolled in this course", error_code="ALREADY_ENROLLED")
        return insert_enrollment(course_id, student_id)

    def list_enrolled_courses(self, student_id: str) -> List[Dict[str, Any]]:
        return list_courses_by_ids(get_enrolled_course_ids(student_id))

    def get_course_outline(self, course_id: str) -> Dict[str, Any]:
        """Course, its lecturer, and chapters each carrying their learning objectives"""
        course = self.get_course(course_id)
        lecturer = get_user_by_id(course["lecturer_id"]) if course.get("lecturer_id") else None

        chapters = get_chapters_by_course(course_id)
        objectives = get_learning_objectives_by_chapters([c["id"] for c in chapters])
        by_chapter: Dict[str, List[Dict[str, Any]]] = {}
        for lo in objectives:
            by_chapter.setdefault(lo["chapter_id"], []).append(lo)

        return {
            "course": course,
            "lecturer": {"id": lecturer["id"], "name": lecturer.get("name")} if lecturer else None,
            "chapters": [
                {**chapter, "learning_objectives": by_chapter.get(chapter["id"], [])}
                for chapter in chapters
            ],
        }

    # Chapters

    def list_chapters(self, course_id: str) -> List[Dict[str, Any]]:
        return get_chapters_by_course(course_id)

    def create_chapter(self, course_id: str, user_id: str, request: ChapterRequest) -> Dict[str, Any]:
        if not request.title.strip():
            raise ValidationError("Please fill in all required fields: title")
        self.get_course(course_id)
        return insert_chapter({
            "id": generate_uuid(),
            "course_id": course_id,
            "title": request.title,
            "order_num": request.order_num,
            "created_by": user_id,
        })

    def update_chapter(self, chapter_id: str, request: ChapterRequest) -> Dict[str, Any]:
        if not request.title.strip():
            raise ValidationError("Please fill in all required fields: title")
        updated = update_chapter(chapter_id, {"title": request.title, "order_num": request.order_num})
        if not updated:
            raise NotFoundError(f"Chapter {chapter_id} not found", error_code="CHAPTER_NOT_FOUND")
        return updated

    def delete_chapter(self, chapter_id: str) -> None:
        delete_chapter(chapter_id)

    # Learning objectives

    def list_objectives(self, chapter_id: str) -> List[Dict[str, Any]]:
        return get_learning_objectives_by_chapters([chapter_id])

    def save_objective(
        self,
        user_id: str,
        request: LearningObjectiveRequest,
        chapter_id: Optional[str] = None,
        lo_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create an objective under chapter_id, or update lo_id, then replace its materials.
        Materials without both a type and a URL are skipped.
        """
        if not request.title.strip() or not request.lo_code.strip():
            raise ValidationError("Please fill in both title and LO code")

        fields = {
            "title": request.title,
            "description": request.description,
            "lo_code": request.lo_code,
        }
        if lo_id:
            objective = update_learning_objective(lo_id, fields)
            if not objective:
                raise NotFoundError(f"Learning objective {lo_id} not found", error_code="OBJECTIVE_NOT_FOUND")
        else:
            if not chapter_id or not get_chapter_by_id(chapter_id):
                raise NotFoundError(f"Chapter {chapter_id} not found", error_code="CHAPTER_NOT_FOUND")
            lo_id = generate_uuid()
            objective = insert_learning_objective({"id": lo_id, "chapter_id": chapter_id, **fields})

        materials = replace_materials(lo_id, [
            {
                "id": generate_uuid(),
                "lo_id": lo_id,
                "type": m.type,
                "url": m.url,
                "uploaded_by": user_id,
            }
            for m in request.materials
            if m.type and m.url
        ])
        return {**objective, "materials": materials}

    def get_objective(self, lo_id: str) -> Dict[str, Any]:
        objective = get_learning_objective(lo_id)
        if not objective:
            raise NotFoundError(f"Learning objective {lo_id} not found", error_code="OBJECTIVE_NOT_FOUND")
        return {**objective, "materials": get_materials_by_objective(lo_id)}

    def delete_objective(self, lo_id: str) -> None:
        delete_learning_objective(lo_id)

    def upload_material(self, filename: str, data: bytes, content_type: Optional[str] = None) -> Dict[str, str]:
        if not data:
            raise ValidationError("Uploaded file is empty", error_code="EMPTY_FILE")
        path = build_material_path(filename)
        url = upload_material_file(path, data, content_type or "application/octet-stream")
        logger.info(f"Uploaded material {filename} to {path}")
        return {"type": "pdf" if path.endswith(".pdf") else "file", "url": url, "path": path}
