"""baseline schema: family trees, shares, people, relationships

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-18 09:12:41.502117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from app.models import Gender, RelationshipType, SharePermission, TreeType

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "family_tree",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("owner_name", sa.String(128)),
        sa.Column("tree_type", sa.Enum(TreeType, name="tree_type"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_family_tree_user_id", "family_tree", ["user_id"])

    op.create_table(
        "tree_share",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tree_id", sa.String(36), sa.ForeignKey("family_tree.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("permission", sa.Enum(SharePermission, name="share_permission"), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("tree_id", "user_id", name="uq_tree_share_once"),
    )
    op.create_index("ix_tree_share_tree_id", "tree_share", ["tree_id"])
    op.create_index("ix_tree_share_user_id", "tree_share", ["user_id"])

    op.create_table(
        "person",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tree_id", sa.String(36), sa.ForeignKey("family_tree.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("phone", sa.String(32)),
        sa.Column("email", sa.String(256)),
        sa.Column("address", sa.Text()),
        sa.Column("birth_date", sa.Date()),
        sa.Column("gender", sa.Enum(Gender, name="gender")),
        sa.Column("occupation", sa.String(128)),
        sa.Column("notes", sa.Text()),
        sa.Column("relationship_to_bride", sa.String(128)),
        sa.Column("relationship_to_groom", sa.String(128)),
        sa.Column("relationship_to_owner", sa.String(128)),
        sa.Column("position_x", sa.Float(), nullable=False),
        sa.Column("position_y", sa.Float(), nullable=False),
        sa.Column("is_alive", sa.Boolean(), nullable=False),
        sa.Column("profile_picture", sa.String(512)),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_person_tree_id", "person", ["tree_id"])

    op.create_table(
        "relationship",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("from_person_id", sa.String(36), sa.ForeignKey("person.id", ondelete="CASCADE"), nullable=False),
        sa.Column("to_person_id", sa.String(36), sa.ForeignKey("person.id", ondelete="CASCADE"), nullable=False),
        sa.Column("relationship_type", sa.Enum(RelationshipType, name="relationship_type"), nullable=False),
        sa.Column("custom_relationship_name", sa.String(128)),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("notes", sa.Text()),
        sa.Column("tree_id", sa.String(36), sa.ForeignKey("family_tree.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("from_person_id", "to_person_id", "relationship_type", "tree_id", name="uq_rel_once"),
        sa.CheckConstraint("from_person_id != to_person_id", name="ck_rel_not_self"),
    )
    op.create_index("ix_relationship_from_person_id", "relationship", ["from_person_id"])
    op.create_index("ix_relationship_to_person_id", "relationship", ["to_person_id"])
    op.create_index("ix_relationship_relationship_type", "relationship", ["relationship_type"])
    op.create_index("ix_relationship_tree_id", "relationship", ["tree_id"])
    op.create_index("ix_rel_tree_type", "relationship", ["tree_id", "relationship_type"])


def downgrade() -> None:
    op.drop_table("relationship")
    op.drop_table("person")
    op.drop_table("tree_share")
    op.drop_table("family_tree")
    for enum_name in ("relationship_type", "gender", "share_permission", "tree_type"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
