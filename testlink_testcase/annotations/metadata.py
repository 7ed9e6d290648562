"""
Test Metadata Annotations.

Declarative metadata attached to a test class (or test function) and read
at test setup:
- TestInfo: the TestLink project and first-level suite of the test.
- Coverage: the SRS folder and requirement ids the test covers.
- TestScript: manual steps as parallel actions / expected results.

Each annotation instance doubles as a decorator::

    @TestInfo(project="p1", suite="s1")
    @Coverage(srs="175", requirements=["12", "13"])
    @TestScript(
        actions=["1. Open application", "2. Login"],
        expected_results=["1. Application starts", "2. User is authenticated"],
    )
    class TestLogin(TestLinkTestCase):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from loguru import logger

ANNOTATIONS_ATTR = "__testlink_annotations__"

A = TypeVar("A", bound="_Annotation")
T = TypeVar("T")


class _Annotation:
    """Mixin turning an annotation instance into a class/function decorator."""

    def __call__(self, target: T) -> T:
        # Copy so decorating a subclass leaves the parent's registry untouched
        annotations: Dict[type, Any] = dict(getattr(target, ANNOTATIONS_ATTR, {}))
        annotations[type(self)] = self
        setattr(target, ANNOTATIONS_ATTR, annotations)
        return target


@dataclass
class TestInfo(_Annotation):
    """
    Test case information.

    Attributes:
        project: Name of the TestLink test project.
        suite: Name of a first-level test suite in that project.
    """

    __test__ = False

    project: str
    suite: str


@dataclass
class Coverage(_Annotation):
    """
    Requirements covered by the test.

    Attributes:
        srs: Id of the requirement specification (SRS) folder.
        requirements: Requirement ids inside the SRS folder.
    """

    srs: str
    requirements: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.srs = str(self.srs)
        self.requirements = tuple(str(r) for r in self.requirements)


@dataclass
class TestScript(_Annotation):
    """
    Manual test script of the test.

    Attributes:
        actions: Step actions, in order.
        expected_results: Expected result of each action, same length as actions.
    """

    __test__ = False

    actions: Tuple[str, ...] = ()
    expected_results: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.actions = tuple(self.actions)
        self.expected_results = tuple(self.expected_results)


@dataclass
class TestMetadata:
    """All TestLink annotations found on a test."""

    __test__ = False

    info: Optional[TestInfo] = None
    coverage: Optional[Coverage] = None
    script: Optional[TestScript] = None

    @property
    def is_exportable(self) -> bool:
        """A test can be exported once it names its project and suite."""
        return self.info is not None


def get_annotation(target: Any, annotation_type: Type[A]) -> Optional[A]:
    """
    Get the annotation of the given type declared on a test class or function.

    Args:
        target: Decorated class, instance or function.
        annotation_type: TestInfo, Coverage or TestScript.

    Returns:
        The annotation instance, or None (logged) if the test does not declare it.
    """
    annotations = getattr(target, ANNOTATIONS_ATTR, {})
    annotation = annotations.get(annotation_type)
    if annotation is None:
        name = getattr(target, "__qualname__", type(target).__qualname__)
        logger.error(
            f"Error: annotation {annotation_type.__name__} is missing on {name}"
        )
    return annotation


def has_annotations(target: Any) -> bool:
    """Return True if the target carries any TestLink annotation."""
    return bool(getattr(target, ANNOTATIONS_ATTR, None))


def collect_metadata(target: Any) -> TestMetadata:
    """Collect TestInfo, Coverage and TestScript declared on a target."""
    annotations = getattr(target, ANNOTATIONS_ATTR, {})
    return TestMetadata(
        info=annotations.get(TestInfo),
        coverage=annotations.get(Coverage),
        script=annotations.get(TestScript),
    )


def qualified_name(target: Any) -> str:
    """Return ``module.QualifiedName`` for a class or function."""
    return f"{target.__module__}.{target.__qualname__}"

