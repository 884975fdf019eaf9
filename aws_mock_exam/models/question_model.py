from enum import Enum
from typing import Annotated, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator, model_validator

OPTION_LETTERS = ("A", "B", "C", "D", "E", "F")


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class SingleAnswer(BaseModel):
    """단일 정답 (라디오 선택)."""
    kind: Literal["single"] = "single"
    letter: str = Field(..., min_length=1, max_length=1)

    @property
    def letters(self) -> Tuple[str, ...]:
        return (self.letter,)

    def to_raw(self) -> str:
        return self.letter


class MultipleAnswer(BaseModel):
    """복수 정답 (체크박스 선택). 순서는 의미 없음 → 정렬/중복 제거해서 보관."""
    kind: Literal["multiple"] = "multiple"
    letters: Tuple[str, ...] = Field(..., min_length=1)

    @field_validator("letters")
    @classmethod
    def normalize_letters(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(sorted(set(v)))

    def to_raw(self) -> list:
        return list(self.letters)


Answer = Annotated[Union[SingleAnswer, MultipleAnswer], Field(discriminator="kind")]


def answer_from_raw(raw) -> Union[SingleAnswer, MultipleAnswer]:
    """
    저장소 원본 값(문자 또는 문자 리스트)을 정답 variant로 변환.
    리스트 → MultipleAnswer, 그 외 → SingleAnswer.
    """
    if isinstance(raw, (list, tuple, set, frozenset)):
        return MultipleAnswer(letters=tuple(str(x).strip() for x in raw))
    return SingleAnswer(letter=str(raw).strip())


class Question(BaseModel):
    """
    AWS 자격증 모의고사 문제 모델
    Pydantic v2 적용
    """
    id: str = Field(
        ...,
        min_length=1,
        description="문제 식별자 (백엔드가 발급한 불투명 문자열)"
    )
    question_text: str = Field(
        ...,
        min_length=1,
        description="문제 내용"
    )
    options: Dict[str, str] = Field(
        ...,
        description="보기 {'A': '...', 'B': '...'} (4~6개)"
    )
    answer: Answer = Field(
        ...,
        description="정답. 단일(SingleAnswer) 또는 복수(MultipleAnswer)"
    )
    explanation: Optional[str] = Field(
        None,
        description="해설 (없으면 해설 영역 생략)"
    )
    category: str = Field(
        "SAA",
        description="분류 태그"
    )
    difficulty: Difficulty = Field(
        Difficulty.medium,
        description="난이도"
    )
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: Dict[str, str]) -> Dict[str, str]:
        """
        검증 로직 1: 보기는 A~F 키로 4~6개여야 한다.
        """
        if not 4 <= len(v) <= 6:
            raise ValueError(f"보기(options)는 4~6개여야 합니다. (현재 {len(v)}개)")
        bad = [k for k in v if k not in OPTION_LETTERS]
        if bad:
            raise ValueError(f"보기 키는 A~F만 사용할 수 있습니다: {bad}")
        return {k: v[k] for k in sorted(v)}

    @field_validator("explanation")
    @classmethod
    def blank_explanation_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v if v and v.strip() else None

    @model_validator(mode="after")
    def validate_answer_in_options(self) -> "Question":
        """
        검증 로직 2: 정답 문자는 반드시 보기 키 안에 있어야 한다.
        """
        missing = [x for x in self.answer.letters if x not in self.options]
        if missing:
            raise ValueError(f"정답({missing})이 보기 키({list(self.options)})에 존재하지 않습니다.")
        return self

    @property
    def is_multiple(self) -> bool:
        return isinstance(self.answer, MultipleAnswer)
