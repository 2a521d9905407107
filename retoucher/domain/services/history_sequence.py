from __future__ import annotations

from retoucher.domain.entities.image_version import ImageVersion


class HistorySequence:
    """Linear version store with a current pointer.

    Invariants:
    - ``-1 <= current_index <= len(self) - 1``
    - ``can_undo`` iff ``current_index > 0``
    - ``can_redo`` iff ``current_index < len(self) - 1``

    ``commit`` drops everything past the pointer before appending. ``reset``
    only moves the pointer back to the first version; later versions stay
    reachable with ``redo``.
    """

    def __init__(self) -> None:
        self._versions: list[ImageVersion] = []
        self._index = -1

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def versions(self) -> tuple[ImageVersion, ...]:
        return tuple(self._versions)

    @property
    def current(self) -> ImageVersion | None:
        if self._index < 0:
            return None
        return self._versions[self._index]

    @property
    def original(self) -> ImageVersion | None:
        return self._versions[0] if self._versions else None

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._versions) - 1

    def commit(self, version: ImageVersion) -> None:
        del self._versions[self._index + 1 :]
        self._versions.append(version)
        self._index = len(self._versions) - 1

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._index -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._index += 1
        return True

    def reset(self) -> bool:
        if not self._versions:
            return False
        self._index = 0
        return True

    def upload_new(self) -> None:
        self._versions.clear()
        self._index = -1

    def __len__(self) -> int:
        return len(self._versions)
