from typing import Dict, List

from ..db.session import get_session
from ..errors import InvalidShippingZoneError
from ..models.shipping_zone import ShippingZone
from ..utils.dto import to_zone_dto


def load_active_zone(session, zone_id: str) -> ShippingZone:
    """Return the zone if it exists and is active, else raise."""
    if not zone_id:
        raise InvalidShippingZoneError(zone_id, reason="missing")
    zone = session.get(ShippingZone, zone_id)
    if zone is None:
        raise InvalidShippingZoneError(zone_id, reason="missing")
    if not zone.is_active:
        raise InvalidShippingZoneError(zone_id, reason="inactive")
    return zone


class ShippingService:
    """Read-only view over the shipping zone table."""

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def list_active_zones(self) -> List[Dict]:
        with self._session_factory() as session:
            rows = (
                session.query(ShippingZone)
                .filter(ShippingZone.is_active.is_(True))
                .order_by(ShippingZone.name.asc())
                .all()
            )
            return [to_zone_dto(r) for r in rows]
