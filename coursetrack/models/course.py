from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Literal, Union
from uuid import UUID, uuid4

LessonType = Literal["video", "text", "quiz", "assignment", "live", "download"]


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    slug: str
    title: str
    instructor_id: UUID
    status: str = "draft"  # draft|published|archived
    price: int = 0  # minor currency units; 0 = free
    certificate_enabled: bool = False
    total_lessons: int = 0  # cached; the lesson store is authoritative
    enrollment_count: int = 0

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @property
    def is_free(self) -> bool:
        return self.price <= 0

    @staticmethod
    def new(
        *,
        slug: str,
        title: str,
        instructor_id: UUID,
        status: str = "draft",
        price: int = 0,
        certificate_enabled: bool = False,
    ) -> Course:
        return Course(
            id=uuid4(),
            slug=slug,
            title=title,
            instructor_id=instructor_id,
            status=status,
            price=price,
            certificate_enabled=certificate_enabled,
        )


# --- Lesson content: one variant per lesson type ---


@dataclass(frozen=True, slots=True)
class VideoContent:
    url: str
    source: str = "upload"  # upload|youtube|vimeo|embed
    duration: int = 0
    kind: Literal["video"] = "video"


@dataclass(frozen=True, slots=True)
class TextContent:
    body: str
    kind: Literal["text"] = "text"


@dataclass(frozen=True, slots=True)
class QuizContent:
    quiz_id: UUID | None = None
    kind: Literal["quiz"] = "quiz"


@dataclass(frozen=True, slots=True)
class AssignmentContent:
    instructions: str
    max_score: int = 1
    due_at: int | None = None
    kind: Literal["assignment"] = "assignment"


@dataclass(frozen=True, slots=True)
class LiveContent:
    meeting_url: str
    scheduled_at: int | None = None
    duration: int = 0
    kind: Literal["live"] = "live"


@dataclass(frozen=True, slots=True)
class DownloadContent:
    files: tuple[str, ...] = ()
    kind: Literal["download"] = "download"


LessonContent = Union[
    VideoContent,
    TextContent,
    QuizContent,
    AssignmentContent,
    LiveContent,
    DownloadContent,
]

_CONTENT_TYPES: dict[str, type] = {
    "video": VideoContent,
    "text": TextContent,
    "quiz": QuizContent,
    "assignment": AssignmentContent,
    "live": LiveContent,
    "download": DownloadContent,
}


def content_to_dict(content: LessonContent) -> dict:
    """Flatten a content variant to JSON-safe primitives (UUIDs as str)."""
    out: dict = {}
    for f in dataclasses.fields(content):
        value = getattr(content, f.name)
        if isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, tuple):
            value = list(value)
        out[f.name] = value
    return out


def content_from_dict(data: dict) -> LessonContent:
    kind = data.get("kind")
    cls = _CONTENT_TYPES.get(kind or "")
    if cls is None:
        raise ValueError(f"unknown lesson content kind {kind!r}")
    values = {k: v for k, v in data.items() if k != "kind"}
    if cls is QuizContent and values.get("quiz_id"):
        values["quiz_id"] = UUID(str(values["quiz_id"]))
    if cls is DownloadContent:
        values["files"] = tuple(values.get("files") or ())
    return cls(**values)


@dataclass(frozen=True, slots=True)
class Lesson:
    id: UUID
    course_id: UUID
    title: str
    position: int
    content: LessonContent

    @property
    def type(self) -> LessonType:
        return self.content.kind

    @staticmethod
    def new(
        *, course_id: UUID, title: str, position: int, content: LessonContent
    ) -> Lesson:
        return Lesson(
            id=uuid4(),
            course_id=course_id,
            title=title,
            position=position,
            content=content,
        )
