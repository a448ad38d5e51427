"""Override patch operations.

Each stored patch is a tagged document ``{"op": ..., ...}``. Known ops map to
one model below; anything else parses to UnknownPatch so that newer patch
kinds never break generation on an older engine.
"""
from typing import Any, Literal, Union

from pydantic import Field, ValidationError as PydanticValidationError

from liftplan.schemas.base import CamelModel


class AccessorySet(CamelModel):
    set_number: int | None = None
    reps: int | None = None
    weight_kg: float | None = None
    rpe: float | None = None


class AddAccessoryValue(CamelModel):
    exercise_name: str = Field(min_length=1)
    sets: list[AccessorySet] = Field(default_factory=list)
    order: int = 99


class PatchTarget(CamelModel):
    block_target: str | None = None
    exercise_name: str | None = None


class ExerciseNameValue(CamelModel):
    exercise_name: str = Field(min_length=1)


class ReorderValue(CamelModel):
    order: list[str]


class SetParamValue(CamelModel):
    key: str = Field(min_length=1)
    value: Any = None


class AddAccessoryPatch(CamelModel):
    op: Literal["ADD_ACCESSORY"] = "ADD_ACCESSORY"
    value: AddAccessoryValue


class ReplaceExercisePatch(CamelModel):
    op: Literal["REPLACE_EXERCISE"] = "REPLACE_EXERCISE"
    target: PatchTarget
    value: ExerciseNameValue


class RemoveExercisePatch(CamelModel):
    op: Literal["REMOVE_EXERCISE"] = "REMOVE_EXERCISE"
    target: PatchTarget


class ReorderBlocksPatch(CamelModel):
    op: Literal["REORDER_BLOCKS"] = "REORDER_BLOCKS"
    value: ReorderValue


class SetParamPatch(CamelModel):
    op: Literal["SET_PARAM"] = "SET_PARAM"
    value: SetParamValue


class UnknownPatch(CamelModel):
    op: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


Patch = Union[
    AddAccessoryPatch,
    ReplaceExercisePatch,
    RemoveExercisePatch,
    ReorderBlocksPatch,
    SetParamPatch,
    UnknownPatch,
]

PATCH_MODELS: dict[str, type[CamelModel]] = {
    "ADD_ACCESSORY": AddAccessoryPatch,
    "REPLACE_EXERCISE": ReplaceExercisePatch,
    "REMOVE_EXERCISE": RemoveExercisePatch,
    "REORDER_BLOCKS": ReorderBlocksPatch,
    "SET_PARAM": SetParamPatch,
}


class InvalidPatchError(Exception):
    """A known op whose payload does not match its shape."""

    def __init__(self, op: str, errors: list[dict]):
        self.op = op
        self.errors = errors
        super().__init__(f"Invalid {op} patch")


def parse_patch(raw: Any) -> Patch:
    """Parse a stored patch document.

    Raises:
        InvalidPatchError: for a known op with a malformed payload
    """
    if not isinstance(raw, dict):
        return UnknownPatch(op=None, raw={"value": raw})

    op = raw.get("op")
    model = PATCH_MODELS.get(op) if isinstance(op, str) else None
    if model is None:
        return UnknownPatch(op=op if isinstance(op, str) else None, raw=raw)

    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        raise InvalidPatchError(op, e.errors(include_url=False, include_context=False, include_input=False))
