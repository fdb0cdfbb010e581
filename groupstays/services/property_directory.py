# ================================
# PROPERTY DIRECTORY (services/property_directory.py)
# ================================

from typing import Optional, List, Iterable
from sqlalchemy.orm import Session

from groupstays.models.business import Property
from groupstays.models.user import User
from groupstays.models.enums import PropertyStatus
from groupstays.utils.location_utils import normalize_region

class PropertyDirectory:
    """Read-only lookups of owner and property reference data"""

    @staticmethod
    def get_owned_approved(db: Session, property_id: int, owner_id: int) -> Optional[Property]:
        return db.query(Property).filter(
            Property.id == property_id,
            Property.owner_id == owner_id,
            Property.status == PropertyStatus.APPROVED
        ).first()

    @staticmethod
    def get_many(db: Session, property_ids: Iterable[int]) -> List[Property]:
        ids = list(property_ids)
        if not ids:
            return []
        return db.query(Property).filter(Property.id.in_(ids)).all()

    @staticmethod
    def list_approved(db: Session, region: Optional[str] = None) -> List[Property]:
        """
        Approved properties, optionally narrowed to a region.

        Region matching is done on the normalised value in Python so that
        'ARUSHA ' and 'Arusha' land in the same bucket.
        """
        properties = db.query(Property).filter(
            Property.status == PropertyStatus.APPROVED
        ).order_by(Property.id).all()

        wanted = normalize_region(region)
        if wanted is None:
            return properties
        return [p for p in properties if normalize_region(p.region_name) == wanted]

    @staticmethod
    def has_approved_property(db: Session, owner_id: int) -> bool:
        return db.query(Property.id).filter(
            Property.owner_id == owner_id,
            Property.status == PropertyStatus.APPROVED
        ).first() is not None

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

property_directory = PropertyDirectory()
