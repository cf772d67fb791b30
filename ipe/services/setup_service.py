"""Setup service: onboarding state and the one-shot configuration wizard."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipe.models.party import Party
from ipe.models.property import Property
from ipe.models.setup_config import SetupConfig
from ipe.models.user import Role, User
from ipe.schemas.setup import SetupWizardPayload, WizardParty
from ipe.services.audit_service import AuditService
from ipe.services.auth_service import hash_password
from ipe.services.errors import DataValidationError
from ipe.services.party_service import normalize_email
from ipe.services.property_service import build_property
from ipe.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)


class SetupService:
    """Service for initial configuration.

    Args:
        db: Database session (the service commits it)
        initial_password: Password given to the buyer login
    """

    def __init__(self, db: Session, initial_password: str):
        self.db = db
        self.initial_password = initial_password

    def current(self) -> SetupConfig | None:
        return self.db.execute(select(SetupConfig).order_by(SetupConfig.id).limit(1)).scalar_one_or_none()

    def is_configured(self) -> bool:
        config = self.current()
        return bool(config and config.initial_setup_done)

    def run_wizard(self, payload: SetupWizardPayload) -> User:
        """Create owner and buyer (parties and logins), the property and the setup row.

        Everything is written in one commit; nothing is written on failure.

        Returns:
            The owner user, who can log in right away

        Raises:
            DataValidationError: already configured, property exists, or bad input
        """
        if self.is_configured():
            raise DataValidationError("System is already configured")
        if self.db.execute(select(Property).limit(1)).scalar_one_or_none() is not None:
            raise DataValidationError("A property is already registered")

        owner_email = normalize_email(payload.owner.email)
        buyer_email = normalize_email(payload.buyer.email)
        if owner_email == buyer_email:
            raise DataValidationError("Owner and buyer must have different emails")
        taken = self.db.execute(
            select(User.email).where(User.email.in_([owner_email, buyer_email]))
        ).scalars().first()
        if taken is not None:
            raise DataValidationError(f"A user with email {taken} already exists")

        prop = build_property(
            payload.property.name,
            payload.property.address,
            payload.property.sale_value,
            payload.property.rent_value,
        )
        owner_user = User(
            email=owner_email,
            password_hash=hash_password(payload.owner.password),
            name=payload.owner.name.strip(),
            role=Role.OWNER,
        )
        buyer_user = User(
            email=buyer_email,
            password_hash=hash_password(self.initial_password),
            name=payload.buyer.name.strip(),
            role=Role.BUYER,
        )

        def mutate() -> None:
            owner_user.party = _party_from(payload.owner, Role.OWNER, owner_email)
            buyer_user.party = _party_from(payload.buyer, Role.BUYER, buyer_email)
            self.db.add_all([owner_user, buyer_user, prop])
            config = self.current()
            if config is None:
                config = SetupConfig()
                self.db.add(config)
            config.initial_setup_done = True
            config.contract_start_date = payload.contract_start_date
            self.db.flush()
            AuditService.log(
                self.db,
                "setup",
                config.id,
                "wizard",
                actor_id=owner_user.id,
                changes={"property_id": prop.id, "owner": owner_email, "buyer": buyer_email},
            )

        run_in_transaction(self.db, None, mutate, "setup wizard")
        logger.info(f"Initial setup completed (owner={owner_email}, property={prop.id})")
        return owner_user


def _party_from(details: WizardParty, role: Role, email: str) -> Party:
    return Party(
        kind=role,
        name=details.name.strip(),
        email=email,
        cpf=details.cpf.strip(),
        phone=details.phone,
        rg=details.rg,
        issuing_agency=details.issuing_agency,
    )


__all__ = ["SetupService"]
