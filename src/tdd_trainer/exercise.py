"""Exercise (kata) definitions."""

from dataclasses import dataclass, replace
from typing import Dict, Optional


DEFAULT_BABYSTEPS_TIME_S = 180


@dataclass(frozen=True)
class SourceFile:
    name: str
    content: str

    def with_content(self, content: str) -> "SourceFile":
        return replace(self, content=content)


@dataclass(frozen=True)
class Exercise:
    """
    A kata: production code, tests, and babystep budgets.

    Submissions are the same exercise with different file contents, so
    a submission keeps the name and budgets of the exercise it came from.
    """
    name: str
    description: str = ""
    code: tuple[SourceFile, ...] = ()
    tests: tuple[SourceFile, ...] = ()
    baby_steps_activated: bool = False
    baby_steps_code_time: int = DEFAULT_BABYSTEPS_TIME_S
    baby_steps_test_time: int = DEFAULT_BABYSTEPS_TIME_S

    @property
    def files(self) -> tuple[SourceFile, ...]:
        return self.code + self.tests

    def file_names(self) -> list[str]:
        return [f.name for f in self.files]

    def get_file(self, name: str) -> Optional[SourceFile]:
        for f in self.files:
            if f.name == name:
                return f
        return None

    def with_contents(self, contents: Dict[str, str]) -> "Exercise":
        """
        Return a copy with file contents replaced by name.

        Args:
            contents: Mapping of file name to new content. Names that are not
                      part of the exercise are ignored.

        Returns:
            New Exercise with the same name, description and budgets
        """
        code = tuple(
            f.with_content(contents[f.name]) if f.name in contents else f
            for f in self.code
        )
        tests = tuple(
            f.with_content(contents[f.name]) if f.name in contents else f
            for f in self.tests
        )
        return replace(self, code=code, tests=tests)
