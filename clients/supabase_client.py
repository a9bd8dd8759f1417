import os
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv
from supabase import create_client, Client
from datetime import datetime
import logging

from utils.exceptions import StorageError

load_dotenv()

logger = logging.getLogger(__name__)

MATERIALS_BUCKET = os.getenv("MATERIALS_BUCKET", "materials")

_supabase_client: Optional[Client] = None

def get_supabase() -> Client:
    global _supabase_client
    if _supabase_client is None:
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_KEY")
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
        _supabase_client = create_client(url, key)
    return _supabase_client


def _execute(query, action: str) -> List[Dict[str, Any]]:
    """
    Run a query builder and return its rows.
    Every failure is logged and re-raised as StorageError so callers can
    surface it without touching their in-memory state.
    """
    try:
        response = query.execute()
    except Exception as e:
        logger.error(f"Supabase {action} failed: {e}")
        raise StorageError(f"Failed to {action}: {e}", context={"action": action})
    return response.data or []


def _first(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


# ============================================================================
# Courses
# ============================================================================

def get_course_by_id(course_id: str) -> Optional[Dict[str, Any]]:
    """Get a course by id."""
    rows = _execute(
        get_supabase().table("courses").select("*").eq("id", course_id),
        "fetch course",
    )
    return _first(rows)


def list_courses_by_lecturer(lecturer_id: str) -> List[Dict[str, Any]]:
    """List a lecturer's courses, newest first."""
    return _execute(
        get_supabase().table("courses")
        .select("*")
        .eq("lecturer_id", lecturer_id)
        .order("created_at", desc=True),
        "list courses",
    )


def list_all_courses() -> List[Dict[str, Any]]:
    return _execute(get_supabase().table("courses").select("*"), "list courses")


def list_courses_by_ids(course_ids: List[str]) -> List[Dict[str, Any]]:
    if not course_ids:
        return []
    return _execute(
        get_supabase().table("courses").select("*").in_("id", course_ids),
        "list courses",
    )


def insert_course(course_data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a course record and return the stored row."""
    rows = _execute(get_supabase().table("courses").insert(course_data), "create course")
    if not rows:
        raise StorageError("Course insert returned no data")
    return rows[0]


def update_course(course_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    rows = _execute(
        get_supabase().table("courses").update(fields).eq("id", course_id),
        "update course",
    )
    return _first(rows)


def delete_course(course_id: str) -> None:
    _execute(get_supabase().table("courses").delete().eq("id", course_id), "delete course")


# ============================================================================
# Enrollments and users
# ============================================================================

def insert_enrollment(course_id: str, student_id: str) -> Dict[str, Any]:
    data = {
        "course_id": course_id,
        "student_id": student_id,
        "enrolled_at": datetime.now().isoformat(),
    }
    rows = _execute(get_supabase().table("enrollments").insert(data), "enroll student")
    return rows[0] if rows else data


def get_enrolled_course_ids(student_id: str) -> List[str]:
    rows = _execute(
        get_supabase().table("enrollments").select("course_id").eq("student_id", student_id),
        "list enrollments",
    )
    return [row["course_id"] for row in rows]


def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    rows = _execute(
        get_supabase().table("users").select("id, name, email, role").eq("id", user_id),
        "fetch user",
    )
    return _first(rows)


# ============================================================================
# Chapters
# ============================================================================

def get_chapter_by_id(chapter_id: str) -> Optional[Dict[str, Any]]:
    rows = _execute(
        get_supabase().table("chapters").select("*").eq("id", chapter_id),
        "fetch chapter",
    )
    return _first(rows)


def get_chapters_by_course(course_id: str) -> List[Dict[str, Any]]:
    """Get all chapters for a course, ordered by order_num."""
    return _execute(
        get_supabase().table("chapters")
        .select("*")
        .eq("course_id", course_id)
        .order("order_num"),
        "fetch chapters",
    )


def insert_chapter(chapter_data: Dict[str, Any]) -> Dict[str, Any]:
    rows = _execute(get_supabase().table("chapters").insert(chapter_data), "create chapter")
    return rows[0] if rows else chapter_data


def update_chapter(chapter_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    rows = _execute(
        get_supabase().table("chapters").update(fields).eq("id", chapter_id),
        "update chapter",
    )
    return _first(rows)


def delete_chapter(chapter_id: str) -> None:
    _execute(get_supabase().table("chapters").delete().eq("id", chapter_id), "delete chapter")


# ============================================================================
# Learning objectives and materials
# ============================================================================

def get_learning_objective(lo_id: str) -> Optional[Dict[str, Any]]:
    rows = _execute(
        get_supabase().table("learning_objectives").select("*").eq("id", lo_id),
        "fetch learning objective",
    )
    return _first(rows)


def get_learning_objectives_by_chapters(chapter_ids: List[str]) -> List[Dict[str, Any]]:
    """Get learning objectives for a set of chapters, ordered by lo_code."""
    if not chapter_ids:
        return []
    return _execute(
        get_supabase().table("learning_objectives")
        .select("*")
        .in_("chapter_id", chapter_ids)
        .order("lo_code"),
        "fetch learning objectives",
    )


def insert_learning_objective(lo_data: Dict[str, Any]) -> Dict[str, Any]:
    rows = _execute(
        get_supabase().table("learning_objectives").insert(lo_data),
        "create learning objective",
    )
    return rows[0] if rows else lo_data


def update_learning_objective(lo_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    rows = _execute(
        get_supabase().table("learning_objectives").update(fields).eq("id", lo_id),
        "update learning objective",
    )
    return _first(rows)


def delete_learning_objective(lo_id: str) -> None:
    _execute(
        get_supabase().table("learning_objectives").delete().eq("id", lo_id),
        "delete learning objective",
    )


def get_materials_by_objective(lo_id: str) -> List[Dict[str, Any]]:
    return _execute(
        get_supabase().table("learning_materials").select("*").eq("lo_id", lo_id),
        "fetch learning materials",
    )


def replace_materials(lo_id: str, materials: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Delete an objective's materials and insert the given list in one batch."""
    _execute(
        get_supabase().table("learning_materials").delete().eq("lo_id", lo_id),
        "delete learning materials",
    )
    if not materials:
        return []
    return _execute(
        get_supabase().table("learning_materials").insert(materials),
        "insert learning materials",
    )


def upload_material_file(path: str, data: bytes, content_type: str) -> str:
    """Upload bytes to the materials bucket and return the public URL."""
    bucket = get_supabase().storage.from_(MATERIALS_BUCKET)
    try:
        bucket.upload(path, data, {"content-type": content_type})
    except Exception as e:
        logger.error(f"Storage upload failed for {path}: {e}")
        raise StorageError(f"Failed to upload file: {e}", error_code="UPLOAD_FAILED", context={"path": path})
    return bucket.get_public_url(path)


# ============================================================================
# Questions, choices and objective mappings
# ============================================================================

def get_question_ids_for_objectives(lo_ids: List[str]) -> List[str]:
    """Distinct question ids mapped to any of the objectives, first-seen order kept."""
    if not lo_ids:
        return []
    rows = _execute(
        get_supabase().table("question_lo").select("question_id").in_("lo_id", lo_ids),
        "fetch question mappings",
    )
    return list(dict.fromkeys(row["question_id"] for row in rows))


def get_mappings_for_questions(question_ids: List[str]) -> List[Dict[str, Any]]:
    if not question_ids:
        return []
    return _execute(
        get_supabase().table("question_lo").select("*").in_("question_id", question_ids),
        "fetch question mappings",
    )


def get_questions_by_ids(question_ids: List[str]) -> List[Dict[str, Any]]:
    if not question_ids:
        return []
    return _execute(
        get_supabase().table("questions").select("*").in_("id", question_ids),
        "fetch questions",
    )


def get_questions_by_creator(user_id: str) -> List[Dict[str, Any]]:
    return _execute(
        get_supabase().table("questions").select("*").eq("created_by", user_id),
        "fetch questions",
    )


def get_choices_for_questions(question_ids: List[str]) -> List[Dict[str, Any]]:
    if not question_ids:
        return []
    return _execute(
        get_supabase().table("choices").select("*").in_("question_id", question_ids),
        "fetch choices",
    )


def upsert_question(question_data: Dict[str, Any]) -> Dict[str, Any]:
    rows = _execute(
        get_supabase().table("questions").upsert(question_data, on_conflict="id"),
        "save question",
    )
    return rows[0] if rows else question_data


def replace_choices(question_id: str, choices: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    _execute(
        get_supabase().table("choices").delete().eq("question_id", question_id),
        "delete choices",
    )
    if not choices:
        return []
    return _execute(get_supabase().table("choices").insert(choices), "insert choices")


def replace_question_mappings(question_id: str, mappings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    _execute(
        get_supabase().table("question_lo").delete().eq("question_id", question_id),
        "delete question mappings",
    )
    if not mappings:
        return []
    return _execute(
        get_supabase().table("question_lo").insert(mappings),
        "insert question mappings",
    )


def delete_question_cascade(question_id: str) -> None:
    """Delete choices, then objective mappings, then the question itself."""
    _execute(get_supabase().table("choices").delete().eq("question_id", question_id), "delete choices")
    _execute(
        get_supabase().table("question_lo").delete().eq("question_id", question_id),
        "delete question mappings",
    )
    _execute(get_supabase().table("questions").delete().eq("id", question_id), "delete question")


# ============================================================================
# Assessments
# ============================================================================

def upsert_assessment(assessment_data: Dict[str, Any]) -> Dict[str, Any]:
    """Write an assessment row. Upsert on id so a resubmission reuses it."""
    rows = _execute(
        get_supabase().table("assessments").upsert(assessment_data, on_conflict="id"),
        "create assessment",
    )
    if not rows:
        raise StorageError("Assessment insert returned no data", context={"assessment_id": assessment_data.get("id")})
    return rows[0]


def upsert_assessment_results(results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Bulk-write result rows for one assessment."""
    if not results:
        return []
    return _execute(
        get_supabase().table("assessment_results").upsert(results, on_conflict="id"),
        "create assessment results",
    )


def get_assessments_for_student(student_id: str, course_id: Optional[str] = None) -> List[Dict[str, Any]]:
    query = get_supabase().table("assessments").select("*").eq("student_id", student_id)
    if course_id:
        query = query.eq("course_id", course_id)
    return _execute(query.order("created_at", desc=True), "list assessments")


def get_results_for_assessment(assessment_id: str) -> List[Dict[str, Any]]:
    return _execute(
        get_supabase().table("assessment_results").select("*").eq("assessment_id", assessment_id),
        "fetch assessment results",
    )
