from dataclasses import dataclass

from shared.config.constants import CUSTOMER_ROLES, DRIVER_ROLES


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, passed explicitly into every booking operation."""

    user_id: str
    user_type: str
    email: str | None = None

    @property
    def is_driver(self) -> bool:
        return self.user_type in DRIVER_ROLES

    @property
    def is_customer(self) -> bool:
        return self.user_type in CUSTOMER_ROLES
