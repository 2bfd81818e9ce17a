"""Lesson add/remove for the catalog collaborator.

Both endpoints reconcile every enrollment of the course, so adding a
lesson to a finished course reopens its completed enrollments.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from coursetrack.api.dependencies import get_outbox, require_user
from coursetrack.models.course import Lesson, content_from_dict, content_to_dict
from coursetrack.models.principal import Principal
from coursetrack.repos.stores import open_stores
from coursetrack.services import catalog
from coursetrack.services.events import Outbox

router = APIRouter(prefix="/v1/courses/{course_id}/lessons", tags=["lessons"])


class VideoIn(BaseModel):
    kind: Literal["video"]
    url: str
    source: Literal["upload", "youtube", "vimeo", "embed"] = "upload"
    duration: int = Field(default=0, ge=0)


class TextIn(BaseModel):
    kind: Literal["text"]
    body: str


class QuizRefIn(BaseModel):
    kind: Literal["quiz"]
    quiz_id: UUID | None = None


class AssignmentIn(BaseModel):
    kind: Literal["assignment"]
    instructions: str
    max_score: int = Field(default=1, ge=1)
    due_at: int | None = None


class LiveIn(BaseModel):
    kind: Literal["live"]
    meeting_url: str
    scheduled_at: int | None = None
    duration: int = Field(default=0, ge=0)


class DownloadIn(BaseModel):
    kind: Literal["download"]
    files: list[str] = []


ContentIn = Annotated[
    Union[VideoIn, TextIn, QuizRefIn, AssignmentIn, LiveIn, DownloadIn],
    Field(discriminator="kind"),
]


class LessonIn(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    position: int | None = Field(default=None, ge=1)
    content: ContentIn


class LessonOut(BaseModel):
    id: UUID
    course_id: UUID
    title: str
    position: int
    type: str
    content: dict


def lesson_out(lesson: Lesson) -> LessonOut:
    return LessonOut(
        id=lesson.id,
        course_id=lesson.course_id,
        title=lesson.title,
        position=lesson.position,
        type=lesson.type,
        content=content_to_dict(lesson.content),
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=LessonOut)
async def add_lesson(
    course_id: UUID,
    body: LessonIn,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> LessonOut:
    async with open_stores() as stores:
        lesson = await catalog.add_lesson(
            stores,
            outbox,
            course_id=course_id,
            title=body.title,
            content=content_from_dict(body.content.model_dump()),
            caller=principal,
            position=body.position,
        )
    return lesson_out(lesson)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_lesson(
    course_id: UUID,
    lesson_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    outbox: Annotated[Outbox, Depends(get_outbox)],
) -> Response:
    async with open_stores() as stores:
        await catalog.remove_lesson(
            stores, outbox, course_id=course_id, lesson_id=lesson_id, caller=principal
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
