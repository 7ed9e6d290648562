"""
TestLink Data Models.

Pass-through representations of the entities owned by the TestLink server.
The XML-RPC client answers with plain dicts (ids frequently as strings);
these dataclasses normalize the handful of fields this package forwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class ExecutionType(Enum):
    """Execution type of a test case or step."""

    MANUAL = 1
    AUTOMATED = 2


class TestImportance(Enum):
    """Importance level of a test case."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3


class ActionOnDuplicate(Enum):
    """What the server does when a test case name already exists in a suite."""

    BLOCK = "block"
    GENERATE_NEW = "generate_new"
    CREATE_NEW_VERSION = "create_new_version"


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass
class TestProject:
    """A TestLink test project."""

    __test__ = False

    id: int
    name: str
    prefix: str = ""
    notes: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TestProject":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            prefix=data.get("prefix", ""),
            notes=data.get("notes", ""),
        )


@dataclass
class TestSuite:
    """A TestLink test suite."""

    __test__ = False

    id: int
    name: str
    parent_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TestSuite":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            parent_id=_to_int(data.get("parent_id")),
        )


@dataclass
class TestCaseStep:
    """
    One manual step of a test case.

    Attributes:
        number: Step number as shown by TestLink.
        actions: What the tester does.
        expected_results: What the tester should observe.
        execution_type: Manual or automated step.
    """

    __test__ = False

    number: int
    actions: str
    expected_results: str
    execution_type: ExecutionType = ExecutionType.MANUAL

    def to_api_dict(self) -> Dict[str, Any]:
        """Convert to the step dict accepted by ``createTestCase``."""
        return {
            "step_number": self.number,
            "actions": self.actions,
            "expected_results": self.expected_results,
            "execution_type": self.execution_type.value,
        }


@dataclass
class TestCase:
    """
    A test case as returned by ``createTestCase``.

    Attributes:
        id: Internal test case id.
        name: Test case name.
        test_project_id: Id of the owning project.
        external_id: Numeric part of the external id.
        full_external_id: Prefixed external id (e.g. "P1-3"), used for
            requirement and custom field calls.
        version: Version number created or updated by the call.
        custom_fields: Design-time custom field values set on this case.
    """

    __test__ = False

    id: int
    name: str
    test_project_id: int
    external_id: str = ""
    full_external_id: str = ""
    version: int = 1
    custom_fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_create_response(
        cls,
        response: Any,
        name: str,
        test_project: TestProject,
    ) -> "TestCase":
        """
        Build a TestCase from a ``createTestCase`` response.

        The server answers with a one-element list of dicts holding
        ``id`` and an ``additionalInfo`` dict with the external id and
        version number.
        """
        result = response[0] if isinstance(response, list) else response
        info = result.get("additionalInfo") or {}
        if not isinstance(info, dict):
            info = {}

        external_id = str(info.get("external_id", "") or "")
        full_external_id = (
            f"{test_project.prefix}-{external_id}"
            if external_id and test_project.prefix
            else external_id
        )
        return cls(
            id=int(result.get("id") or info.get("id")),
            name=name,
            test_project_id=test_project.id,
            external_id=external_id,
            full_external_id=full_external_id,
            version=_to_int(info.get("version_number")) or 1,
        )


@dataclass
class Requirement:
    """A requirement inside a requirement specification (SRS) folder."""

    id: int
    req_spec_id: int
    req_doc_id: str = ""


def requirements_to_api(requirements: Iterable[Requirement]) -> List[Dict[str, Any]]:
    """
    Group requirements by SRS into the structure ``assignRequirements`` expects.

    Returns:
        List like ``[{"req_spec": 175, "requirements": [1, 2]}]`` in the
        order each SRS first appears.
    """
    grouped: Dict[int, List[int]] = {}
    for requirement in requirements:
        grouped.setdefault(requirement.req_spec_id, []).append(requirement.id)
    return [
        {"req_spec": spec_id, "requirements": ids}
        for spec_id, ids in grouped.items()
    ]


@dataclass
class CustomField:
    """A custom field design value."""

    name: str
    value: str = ""
    id: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Any, name: str) -> "CustomField":
        # Simple detail level returns the bare value
        if not isinstance(data, dict):
            return cls(name=name, value="" if data is None else str(data))
        return cls(
            name=data.get("name", name),
            value=str(data.get("value", "") or ""),
            id=_to_int(data.get("id")),
            raw=dict(data),
        )


@dataclass
class Attachment:
    """An attachment uploaded to a test execution."""

    execution_id: Optional[int]
    file_name: str = ""
    file_type: str = ""
    title: str = ""
    description: str = ""

    @classmethod
    def from_api(cls, data: Any) -> "Attachment":
        if isinstance(data, list):
            data = data[0] if data else {}
        return cls(
            execution_id=_to_int(data.get("fk_id")),
            file_name=data.get("file_name", ""),
            file_type=data.get("file_type", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
        )
