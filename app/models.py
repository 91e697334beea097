from sqlalchemy import (
    Column, String, Boolean, ForeignKey, Text, DateTime, Date, Float,
    UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy import Enum as SAEnum
from datetime import datetime
import enum
import uuid

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"


class TreeType(str, enum.Enum):
    FAMILY_TREE = "FAMILY_TREE"
    WEDDING_GUESTS = "WEDDING_GUESTS"
    SOCIAL_NETWORK = "SOCIAL_NETWORK"
    CUSTOM = "CUSTOM"


class SharePermission(str, enum.Enum):
    VIEW = "VIEW"
    EDIT = "EDIT"


class RelationshipType(str, enum.Enum):
    # Direct family
    PARENT = "PARENT"
    CHILD = "CHILD"
    SIBLING = "SIBLING"
    SPOUSE = "SPOUSE"

    # Grandparents / grandchildren
    GRANDPARENT = "GRANDPARENT"
    GRANDCHILD = "GRANDCHILD"
    GREAT_GRANDPARENT = "GREAT_GRANDPARENT"
    GREAT_GRANDCHILD = "GREAT_GRANDCHILD"

    # Aunts/uncles and nieces/nephews
    AUNT = "AUNT"
    UNCLE = "UNCLE"
    NIECE = "NIECE"
    NEPHEW = "NEPHEW"
    GREAT_AUNT = "GREAT_AUNT"
    GREAT_UNCLE = "GREAT_UNCLE"
    GREAT_NIECE = "GREAT_NIECE"
    GREAT_NEPHEW = "GREAT_NEPHEW"

    COUSIN = "COUSIN"

    # In-laws
    MOTHER_IN_LAW = "MOTHER_IN_LAW"
    FATHER_IN_LAW = "FATHER_IN_LAW"
    DAUGHTER_IN_LAW = "DAUGHTER_IN_LAW"
    SON_IN_LAW = "SON_IN_LAW"
    SISTER_IN_LAW = "SISTER_IN_LAW"
    BROTHER_IN_LAW = "BROTHER_IN_LAW"

    # Step / half / adoptive
    STEPPARENT = "STEPPARENT"
    STEPCHILD = "STEPCHILD"
    STEPSIBLING = "STEPSIBLING"
    HALF_SIBLING = "HALF_SIBLING"
    ADOPTED_PARENT = "ADOPTED_PARENT"
    ADOPTED_CHILD = "ADOPTED_CHILD"

    # Godfamily
    GODPARENT = "GODPARENT"
    GODCHILD = "GODCHILD"

    # Social
    CLOSE_FRIEND = "CLOSE_FRIEND"
    FAMILY_FRIEND = "FAMILY_FRIEND"
    MENTOR = "MENTOR"
    MENTEE = "MENTEE"

    CUSTOM = "CUSTOM"


# --- Trees & sharing ---

class FamilyTree(Base):
    __tablename__ = "family_tree"
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(128), nullable=False)
    description = Column(Text)
    owner_name = Column(String(128))
    tree_type = Column(SAEnum(TreeType, name="tree_type"), nullable=False, default=TreeType.FAMILY_TREE)
    user_id = Column(String(64), index=True, nullable=False)  # owner, as resolved by the identity provider
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TreeShare(Base):
    __tablename__ = "tree_share"
    id = Column(String(36), primary_key=True, default=_uuid)
    tree_id = Column(ForeignKey("family_tree.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String(64), index=True, nullable=False)
    permission = Column(SAEnum(SharePermission, name="share_permission"), nullable=False, default=SharePermission.VIEW)
    created_at = Column(DateTime, default=datetime.utcnow)
    __table_args__ = (UniqueConstraint("tree_id", "user_id", name="uq_tree_share_once"),)


# --- People & Relationships ---

class Person(Base):
    __tablename__ = "person"
    id = Column(String(36), primary_key=True, default=_uuid)
    tree_id = Column(ForeignKey("family_tree.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(128), nullable=False)
    phone = Column(String(32))
    email = Column(String(256))
    address = Column(Text)
    birth_date = Column(Date)
    gender = Column(SAEnum(Gender, name="gender"))
    occupation = Column(String(128))
    notes = Column(Text)

    # Free-text context, mostly for wedding guest graphs
    relationship_to_bride = Column(String(128))
    relationship_to_groom = Column(String(128))
    relationship_to_owner = Column(String(128))

    # Canvas layout
    position_x = Column(Float, nullable=False, default=0.0)
    position_y = Column(Float, nullable=False, default=0.0)

    is_alive = Column(Boolean, nullable=False, default=True)
    profile_picture = Column(String(512))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Relationship(Base):
    """
    Directed edge from_person -> to_person inside one tree.
    Meaningful pairs are stored twice (forward + inverse); see
    app.services.relationships.RelationshipRegistry.
    """
    __tablename__ = "relationship"
    id = Column(String(36), primary_key=True, default=_uuid)
    from_person_id = Column(ForeignKey("person.id", ondelete="CASCADE"), index=True, nullable=False)
    to_person_id = Column(ForeignKey("person.id", ondelete="CASCADE"), index=True, nullable=False)
    relationship_type = Column(SAEnum(RelationshipType, name="relationship_type"), index=True, nullable=False)
    custom_relationship_name = Column(String(128))
    start_date = Column(Date)
    end_date = Column(Date)
    notes = Column(Text)
    tree_id = Column(ForeignKey("family_tree.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    from_person = relationship("Person", foreign_keys=[from_person_id])
    to_person = relationship("Person", foreign_keys=[to_person_id])

    __table_args__ = (
        UniqueConstraint("from_person_id", "to_person_id", "relationship_type", "tree_id", name="uq_rel_once"),
        CheckConstraint("from_person_id != to_person_id", name="ck_rel_not_self"),
        Index("ix_rel_tree_type", "tree_id", "relationship_type"),
    )
