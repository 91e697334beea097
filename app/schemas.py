from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict
from datetime import date, datetime

from .models import Gender, TreeType, RelationshipType, SharePermission


# =========================
# PERSON SCHEMAS
# =========================
class PersonBase(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    occupation: Optional[str] = None
    notes: Optional[str] = None
    relationship_to_bride: Optional[str] = None
    relationship_to_groom: Optional[str] = None
    relationship_to_owner: Optional[str] = None
    position_x: float = 0.0
    position_y: float = 0.0
    is_alive: bool = True
    profile_picture: Optional[str] = None

class PersonCreate(PersonBase):
    tree_id: str

class PersonUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    occupation: Optional[str] = None
    notes: Optional[str] = None
    relationship_to_bride: Optional[str] = None
    relationship_to_groom: Optional[str] = None
    relationship_to_owner: Optional[str] = None
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    is_alive: Optional[bool] = None
    profile_picture: Optional[str] = None

class PersonRead(PersonBase):
    id: str
    tree_id: str
    email: Optional[str] = None  # stored values are not re-validated
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FamilyMemberCreate(BaseModel):
    """Body for adding a relative next to an existing person node."""
    relationship_type: RelationshipType
    person: PersonBase


# =========================
# RELATIONSHIP SCHEMAS
# =========================
class RelationshipCreate(BaseModel):
    from_person_id: str
    to_person_id: str
    relationship_type: RelationshipType
    tree_id: str
    custom_relationship_name: Optional[str] = Field(default=None, max_length=128)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

class RelationshipCheck(BaseModel):
    from_person_id: str
    to_person_id: str
    relationship_type: RelationshipType

class RelationshipRead(BaseModel):
    id: str
    from_person_id: str
    to_person_id: str
    relationship_type: RelationshipType
    custom_relationship_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    tree_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RelationshipWithPeople(RelationshipRead):
    from_person: PersonRead
    to_person: PersonRead

class FamilyMemberRead(BaseModel):
    person: PersonRead
    relationship: RelationshipRead

class RelationshipTypeInfo(BaseModel):
    type: RelationshipType
    inverse: Optional[RelationshipType] = None
    self_inverse: bool = False


# =========================
# FAMILY TREE SCHEMAS
# =========================
class FamilyTreeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: Optional[str] = None
    owner_name: Optional[str] = None
    tree_type: TreeType = TreeType.FAMILY_TREE
    is_public: bool = False

class FamilyTreeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = None
    owner_name: Optional[str] = None
    tree_type: Optional[TreeType] = None
    is_public: Optional[bool] = None

class FamilyTreeRead(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    owner_name: Optional[str] = None
    tree_type: TreeType
    user_id: str
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FamilyTreeSummary(FamilyTreeRead):
    people_count: int = 0
    relationships_count: int = 0

class TreeShareCreate(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    permission: SharePermission = SharePermission.VIEW

class TreeShareRead(BaseModel):
    id: str
    tree_id: str
    user_id: str
    permission: SharePermission
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FamilyTreeDetail(FamilyTreeRead):
    people: List[PersonRead] = []
    relationships: List[RelationshipRead] = []
    shared_with: List[TreeShareRead] = []

class FamilyTreeStats(BaseModel):
    total_people: int
    total_relationships: int
    generations: int
    average_relationships_per_person: float
    relationship_type_breakdown: Dict[str, int]

class FamilyInsights(BaseModel):
    largest_generation: int
    oldest_person: Optional[PersonRead] = None
    youngest_person: Optional[PersonRead] = None
    most_connected_person: Optional[PersonRead] = None
    family_size: int
    average_age: Optional[float] = None
