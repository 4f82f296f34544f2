from __future__ import annotations

import base64
import binascii
import logging
import math
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.question import Answer, Area, Question, Subarea
from app.services.errors import ImportItemError
from app.services.storage import upload_bytes


log = logging.getLogger(__name__)

# Answer lines that are really the explanation block pasted from the source document.
_EXPLANATION_RE = re.compile(r"^obja[šs]n[jј]?e", re.IGNORECASE)
_DATA_URL_RE = re.compile(r"^data:(.+);base64,(.+)$")


@dataclass
class NormalizedAnswer:
    text: str
    is_correct: bool


@dataclass
class ImportResult:
    ok: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


def normalize_answer_text(raw: Any) -> str:
    s = str(raw if raw is not None else "")
    s = s.replace("\r", "").replace("\u00a0", " ")
    s = re.sub(r"\s+", " ", s).strip()
    if _EXPLANATION_RE.match(s):
        return ""
    return s


def normalize_answers(answers: list[dict[str, Any]] | None) -> list[NormalizedAnswer]:
    seen: dict[str, NormalizedAnswer] = {}
    for a in answers or []:
        text = normalize_answer_text(a.get("text"))
        if not text:
            continue
        if text not in seen:
            seen[text] = NormalizedAnswer(text=text, is_correct=bool(a.get("is_correct")))
        elif a.get("is_correct"):
            seen[text].is_correct = True

    out = list(seen.values())
    if len(out) < 2:
        raise ImportItemError("question must have at least 2 answers")
    if not any(x.is_correct for x in out):
        raise ImportItemError("at least one answer must be correct")
    return out


def parse_data_url(data_url: str) -> tuple[str, bytes, str]:
    m = _DATA_URL_RE.match(data_url or "")
    if not m:
        raise ImportItemError("invalid image data url")
    mime = m.group(1)
    try:
        payload = base64.b64decode(m.group(2), validate=False)
    except (binascii.Error, ValueError) as e:
        raise ImportItemError("invalid image data url") from e
    if "png" in mime:
        ext = ".png"
    elif "webp" in mime:
        ext = ".webp"
    else:
        ext = ".jpg"
    return mime, payload, ext


def safe_name(name: str) -> str:
    s = re.sub(r"\s+", "-", (name or "").lower())
    return re.sub(r"[^a-z0-9_.-]", "", s)


def _points(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 1
    if not math.isfinite(value):
        return 1
    if value != int(value):
        raise ImportItemError(f"points must be a whole number, got {value}")
    return int(value)


class QuestionImporter:
    def __init__(
        self,
        db: Session,
        *,
        upload: Callable[..., str] = upload_bytes,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.upload = upload
        self.clock = clock

    def _get_or_create_area(self, name: str) -> Area:
        area = self.db.scalar(select(Area).where(Area.name == name))
        if area is None:
            area = Area(name=name)
            self.db.add(area)
            self.db.flush()
        return area

    def _get_or_create_subarea(self, area: Area, name: str) -> Subarea:
        sub = self.db.scalar(select(Subarea).where(Subarea.area_id == area.id, Subarea.name == name))
        if sub is None:
            sub = Subarea(area_id=area.id, name=name)
            self.db.add(sub)
            self.db.flush()
        return sub

    def _upload_image(self, data_url: str, text: str) -> str:
        mime, payload, ext = parse_data_url(data_url)
        key = f"{int(self.clock() * 1000)}-{safe_name(text[:40])}{ext}"
        return self.upload(object_key=key, data=payload, content_type=mime)

    def import_item(self, item: dict[str, Any]) -> int:
        area_name = str(item.get("area") or "").strip()
        sub_name = str(item.get("subarea") or "").strip()
        text = str(item.get("text") or "").strip()
        if not area_name or not sub_name or not text:
            raise ImportItemError("missing area/subarea/text")

        answers = normalize_answers(item.get("answers"))
        points = _points(item.get("points"))

        area = self._get_or_create_area(area_name)
        sub = self._get_or_create_subarea(area, sub_name)

        image_url = None
        if item.get("image_data_url"):
            image_url = self._upload_image(str(item["image_data_url"]), text)

        # Questions are always inserted; only areas/subareas are deduplicated.
        q = Question(
            area_id=area.id,
            subarea_id=sub.id,
            text=text,
            image_url=image_url,
            points=points,
            multi_correct=sum(1 for a in answers if a.is_correct) > 1,
        )
        self.db.add(q)
        self.db.flush()
        for a in answers:
            self.db.add(Answer(question_id=q.id, text=a.text, is_correct=a.is_correct))
        return int(q.id)

    def run(self, items: list[dict[str, Any]]) -> ImportResult:
        result = ImportResult()
        for idx, item in enumerate(items):
            try:
                self.import_item(item)
                self.db.commit()
                result.ok += 1
            except Exception as e:
                self.db.rollback()
                text = item.get("text") if isinstance(item, dict) else None
                result.errors.append(
                    {
                        "index": idx,
                        "message": str(e) or e.__class__.__name__,
                        "text": str(text)[:120] if text else None,
                    }
                )
        log.info("question import finished: ok=%s errors=%s", result.ok, len(result.errors))
        return result
