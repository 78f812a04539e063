"""Session-local integer ids standing in for backend UUIDs"""
from typing import Dict, Optional
from uuid import UUID


class IdentityMap:
    """Bidirectional map between backend UUIDs and sequential integers.

    Integers start at 1 and are never reused. A UUID seen twice always gets
    the same integer back. Integers handed out by :meth:`synthesize` have no
    UUID until :meth:`bind` attaches one, so ``to_native_id`` returns ``None``
    for them.
    """

    def __init__(self):
        self._to_local: Dict[UUID, int] = {}
        self._to_native: Dict[int, UUID] = {}
        self._next_id = 1

    def to_local_id(self, native_id: UUID) -> int:
        local_id = self._to_local.get(native_id)
        if local_id is None:
            local_id = self.synthesize()
            self._to_local[native_id] = local_id
            self._to_native[local_id] = native_id
        return local_id

    def to_native_id(self, local_id: int) -> Optional[UUID]:
        return self._to_native.get(local_id)

    def synthesize(self) -> int:
        """Allocate an integer for a record the backend does not know yet."""
        local_id = self._next_id
        self._next_id += 1
        return local_id

    def bind(self, local_id: int, native_id: UUID) -> None:
        """Attach the backend id learned after a synthesized record was saved."""
        if native_id in self._to_local and self._to_local[native_id] != local_id:
            raise ValueError(f"{native_id} is already mapped to {self._to_local[native_id]}")
        if local_id in self._to_native and self._to_native[local_id] != native_id:
            raise ValueError(f"local id {local_id} is already mapped to {self._to_native[local_id]}")
        self._to_local[native_id] = local_id
        self._to_native[local_id] = native_id

    def __len__(self) -> int:
        return len(self._to_native)
