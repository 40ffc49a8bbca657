# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Persistence adapters for the group list.
Storage format is a JSON array of group records in the persisted camelCase
shape ('Paid'/'Unpaid', 'Pending'/'Active'/'Completed'). Records are
re-validated on load because the file is untyped text.
"""

import json
import os
import tempfile
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from kutu.core.exceptions import InvariantViolation, StorageError
from kutu.models.domain import Group
from kutu.services.rotation import check_invariants


def _decode(raw: Any) -> list[Group]:
    if not isinstance(raw, list):
        raise StorageError("Stored groups must be a JSON array")
    groups: list[Group] = []
    for index, record in enumerate(raw):
        try:
            groups.append(check_invariants(Group.model_validate(record)))
        except PydanticValidationError as exc:
            raise StorageError(f"Stored group #{index} is malformed: {exc}") from exc
        except InvariantViolation as exc:
            raise StorageError(f"Stored group #{index} is inconsistent: {exc}") from exc
    return groups


def _encode(groups: list[Group]) -> str:
    return json.dumps([g.to_record() for g in groups], indent=2)


class GroupStore:
    """Interface: ``load() -> list[Group]`` and ``save(list[Group])``."""

    def load(self) -> list[Group]:
        raise NotImplementedError

    def save(self, groups: list[Group]) -> None:
        raise NotImplementedError


class InMemoryGroupStore(GroupStore):
    """Keeps the last saved document in process memory."""

    def __init__(self) -> None:
        self._document: Optional[str] = None

    def load(self) -> list[Group]:
        if self._document is None:
            return []
        return _decode(json.loads(self._document))

    def save(self, groups: list[Group]) -> None:
        self._document = _encode(groups)

    def clear(self) -> None:
        self._document = None


class JsonFileGroupStore(GroupStore):
    """JSON file on disk, replaced atomically on every save."""

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> list[Group]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as exc:
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            raise StorageError(f"Cannot read groups from {self.path}: {exc}") from exc
        return _decode(raw)

    def save(self, groups: list[Group]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(_encode(groups))
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Cannot write groups to {self.path}: {exc}") from exc
