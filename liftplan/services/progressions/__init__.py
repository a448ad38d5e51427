"""Per-kind session generators, keyed by ``definition.kind``."""
from collections.abc import Callable

from liftplan.schemas.session import PlannedExercise
from liftplan.services.progressions import candito, five_three_one, manual, operator
from liftplan.services.progressions.base import GeneratorInput

Generator = Callable[[GeneratorInput], list[PlannedExercise]]

GENERATORS: dict[str, Generator] = {
    "531": five_three_one.generate,
    "operator": operator.generate,
    "candito-linear": candito.generate,
    "manual": manual.generate,
}

__all__ = ["GENERATORS", "Generator", "GeneratorInput"]
