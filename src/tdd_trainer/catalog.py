"""Exercise catalog: YAML file validated against a JSON schema.

Uses jsonschema for Draft-07 validation, PyYAML for YAML reading.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Sequence, Tuple

import jsonschema
import yaml

from tdd_trainer.constants import BUNDLED_CATALOG, CATALOG_SCHEMA
from tdd_trainer.exercise import DEFAULT_BABYSTEPS_TIME_S, Exercise, SourceFile


class CatalogError(ValueError):
    """Raised when a catalog file cannot be read or is invalid."""
    pass


Chooser = Callable[[Sequence[Exercise]], Optional[Exercise]]


class ExerciseSelector(ABC):
    """Abstract interface for whatever picks the next exercise."""

    @abstractmethod
    def select_exercise(self) -> Optional[Exercise]:
        """Return the chosen exercise, or None if the choice was cancelled."""
        pass


# --- Loading ---

def _load_schema() -> dict:
    return json.loads(CATALOG_SCHEMA.read_text())


def _check_file_name(name: str) -> None:
    """Kata files are written under the workspace, so names must stay relative."""
    path = PurePosixPath(name)
    if not name or "\\" in name or path.is_absolute() or ".." in path.parts:
        raise CatalogError(f"Unsafe file name: {name!r} (must be a relative path inside the workspace)")


def _file_from_dict(raw: dict) -> SourceFile:
    name = str(raw["name"])
    _check_file_name(name)
    return SourceFile(name=name, content=str(raw["content"]))


def _exercise_from_dict(raw: dict) -> Exercise:
    babysteps = raw.get("babysteps") or {}
    return Exercise(
        name=str(raw["name"]),
        description=str(raw.get("description", "")).strip(),
        code=tuple(_file_from_dict(f) for f in raw["code"]),
        tests=tuple(_file_from_dict(f) for f in raw["tests"]),
        baby_steps_activated=bool(babysteps.get("activated", False)),
        baby_steps_code_time=int(babysteps.get("code_time", DEFAULT_BABYSTEPS_TIME_S)),
        baby_steps_test_time=int(babysteps.get("test_time", DEFAULT_BABYSTEPS_TIME_S)),
    )


def parse_catalog(data: object) -> List[Exercise]:
    """
    Build exercises from already-parsed catalog data.

    Raises:
        CatalogError: If the data violates the schema or repeats a name
    """
    try:
        jsonschema.validate(instance=data, schema=_load_schema())
    except jsonschema.ValidationError as e:
        error_msg = f"Validation failed: {e.message}"
        if e.absolute_path:
            error_msg += f" at path: {list(e.absolute_path)}"
        raise CatalogError(error_msg) from e

    exercises = [_exercise_from_dict(raw) for raw in data["exercises"]]

    seen = set()
    for exercise in exercises:
        if exercise.name in seen:
            raise CatalogError(f"Duplicate exercise name: {exercise.name}")
        seen.add(exercise.name)

    return exercises


def load_catalog(path: Optional[Path] = None) -> List[Exercise]:
    """
    Load exercises from a catalog file.

    Args:
        path: Catalog YAML. Defaults to the bundled sample catalog.

    Returns:
        Exercises in file order

    Raises:
        FileNotFoundError: If the file does not exist
        CatalogError: If the file is not valid YAML or not a valid catalog
    """
    if path is None:
        path = BUNDLED_CATALOG
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Catalog not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise CatalogError(f"YAML parse error: {e}") from e

    if data is None:
        raise CatalogError(f"Catalog is empty: {path}")

    return parse_catalog(data)


def validate_catalog_file(path: Path) -> Tuple[bool, str]:
    """
    Validate a catalog file without raising for content problems.

    Returns:
        (is_valid, error_message)

    Raises:
        FileNotFoundError: If the file does not exist
    """
    try:
        exercises = load_catalog(path)
    except CatalogError as e:
        return False, str(e)
    return True, f"{len(exercises)} exercise(s)"


# --- Selection ---

def by_name(name: str) -> Chooser:
    """Chooser that picks the exercise with the given name (case-insensitive)."""
    def choose(exercises: Sequence[Exercise]) -> Optional[Exercise]:
        for exercise in exercises:
            if exercise.name.lower() == name.lower():
                return exercise
        return None
    return choose


class CatalogSelector(ExerciseSelector):
    """Selects from a loaded catalog through a chooser callback."""

    def __init__(self, exercises: Sequence[Exercise], chooser: Chooser):
        self.exercises = list(exercises)
        self.chooser = chooser

    def select_exercise(self) -> Optional[Exercise]:
        if not self.exercises:
            return None
        return self.chooser(self.exercises)
