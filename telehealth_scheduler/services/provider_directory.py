"""
Provider lookups used to gate booking calls
"""

from typing import Optional

from sqlalchemy.orm import sessionmaker

from telehealth_scheduler.database import SessionLocal
from telehealth_scheduler.errors import ProviderNotFound, ProviderUnavailable
from telehealth_scheduler.models.provider import Provider


class SqlProviderDirectory:

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def get_provider(self, provider_id: str) -> Optional[Provider]:
        with self.session_factory() as session:
            return session.query(Provider).filter(Provider.id == provider_id).first()

    def ensure_bookable(self, provider_id: str) -> Provider:
        """
        Return the provider if it exists and is approved and active

        Raises:
            ProviderNotFound: no provider with this id
            ProviderUnavailable: provider exists but does not take bookings
        """
        return ensure_bookable(self.get_provider(provider_id), provider_id)


def ensure_bookable(provider: Optional[Provider], provider_id: str) -> Provider:
    if provider is None:
        raise ProviderNotFound(provider_id)
    if not provider.is_bookable:
        raise ProviderUnavailable(provider_id)
    return provider
