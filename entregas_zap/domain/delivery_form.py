"""New-delivery form state kept per dashboard session"""
import random
from typing import Callable, Collection, Optional

from entregas_zap.domain.exceptions import ValidationError
from entregas_zap.domain.messages import SERVICE_PACKAGE, SERVICES

CODE_MIN = 10000
CODE_MAX = 99999
MAX_CODE_DRAWS = 10


class DeliveryForm:
    """Selected service and the retrieval code it implies.

    A code exists only while the package service is selected. It is drawn
    when the package service is picked and then kept for every notification
    sent from this form until the form is reset or another service is
    chosen. Picking the package service again draws a fresh code.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        taken_codes: Callable[[], Collection[str]] = frozenset,
    ):
        self._rng = rng or random.Random()
        self._taken_codes = taken_codes
        self.service: Optional[str] = None
        self.code: Optional[str] = None

    @property
    def is_package(self) -> bool:
        return self.service == SERVICE_PACKAGE

    def select_service(self, service: str) -> Optional[str]:
        if service not in SERVICES:
            raise ValidationError(f"Unknown service: {service}")

        if service == SERVICE_PACKAGE:
            if self.code is None:
                self.code = self._draw_code()
        else:
            self.code = None

        self.service = service
        return self.code

    def reset(self) -> None:
        self.service = None
        self.code = None

    def _draw_code(self) -> str:
        """5-digit code not used by any pending delivery of the session"""
        taken = self._taken_codes()
        for _ in range(MAX_CODE_DRAWS):
            candidate = str(self._rng.randint(CODE_MIN, CODE_MAX))
            if candidate not in taken:
                return candidate
        raise ValidationError("Could not draw a free retrieval code")
