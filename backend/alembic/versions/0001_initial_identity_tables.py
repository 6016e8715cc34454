"""Initial identity tables: users, candidates, documents.

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

import sqlalchemy as sa
from alembic import op


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("auth_user_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("image_url", sa.String(1024)),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("onboarding_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("onboarding_step", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("onboarding_completed_at", sa.DateTime()),
        sa.Column("onboarding_metadata", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_auth_user_id", "users", ["auth_user_id"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "candidates",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id")),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("location", sa.String(255)),
        sa.Column("current_title", sa.String(255)),
        sa.Column("current_company", sa.String(255)),
        sa.Column("bio", sa.Text()),
        sa.Column("skills", sa.Text()),
        sa.Column("years_experience", sa.Integer()),
        sa.Column("linkedin_url", sa.String(1024)),
        sa.Column("github_url", sa.String(1024)),
        sa.Column("portfolio_url", sa.String(1024)),
        sa.Column("resume_document_id", sa.String(36)),
        sa.Column("desired_job_type", sa.String(50)),
        sa.Column("desired_salary_min", sa.Integer()),
        sa.Column("desired_salary_max", sa.Integer()),
        sa.Column("open_to_remote", sa.Boolean()),
        sa.Column("open_to_relocation", sa.Boolean()),
        sa.Column("availability", sa.String(50)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_candidates_user_id", "candidates", ["user_id"], unique=True)
    op.create_index("ix_candidates_email", "candidates", ["email"])

    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("candidate_id", sa.String(36), sa.ForeignKey("candidates.id"), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("content_type", sa.String(255), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(50), nullable=False, server_default="resume"),
        sa.Column("storage_key", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_documents_candidate_id", "documents", ["candidate_id"])


def downgrade() -> None:
    op.drop_table("documents")
    op.drop_table("candidates")
    op.drop_table("users")
