"""Create customers, technicians, service types and service requests."""

revision = "20261019_000000"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa

from hvac_crm.bootstrap import DEFAULT_SERVICE_TYPES


REQUEST_STATUSES = ("pending", "scheduled", "in_progress", "completed", "cancelled")


def upgrade():
    """Create the dispatch schema."""
    op.create_table(
        "customers",
        sa.Column("customer_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("phone", sa.String(50), nullable=False, index=True),
        sa.Column("email", sa.String(255), index=True),
        sa.Column("address", sa.Text, nullable=False),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(2)),
        sa.Column("zip", sa.String(10)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "technicians",
        sa.Column("tech_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("phone", sa.String(50)),
        sa.Column("email", sa.String(255)),
        sa.Column("specialization", sa.String(100)),
        sa.Column("status", sa.String(50), nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    service_types = op.create_table(
        "service_types",
        sa.Column("service_type_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("service_name", sa.String(255), nullable=False, unique=True),
        sa.Column("base_price", sa.Numeric(10, 2)),
        sa.Column("estimated_duration_minutes", sa.Integer),
    )

    op.create_table(
        "service_requests",
        sa.Column("request_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("customer_id", sa.Integer, sa.ForeignKey("customers.customer_id"), nullable=False, index=True),
        sa.Column("service_type_id", sa.Integer, sa.ForeignKey("service_types.service_type_id")),
        sa.Column("assigned_tech_id", sa.Integer, sa.ForeignKey("technicians.tech_id"), index=True),
        sa.Column(
            "status",
            sa.Enum(*REQUEST_STATUSES, name="request_status", native_enum=False, length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("preferred_date", sa.Date),
        sa.Column("preferred_time", sa.String(50)),
        sa.Column("scheduled_date", sa.Date),
        sa.Column("scheduled_time", sa.Time),
        sa.Column("issue_description", sa.Text),
        sa.Column("notes", sa.Text),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("updated_at >= created_at", name="ck_service_requests_updated_after_created"),
    )
    op.create_index(
        "idx_service_requests_status_priority", "service_requests", ["status", "priority"]
    )
    op.create_index(
        "idx_service_requests_dates", "service_requests", ["scheduled_date", "preferred_date"]
    )

    op.bulk_insert(service_types, [dict(entry) for entry in DEFAULT_SERVICE_TYPES])


def downgrade():
    """Drop the dispatch schema."""
    op.drop_index("idx_service_requests_dates", table_name="service_requests")
    op.drop_index("idx_service_requests_status_priority", table_name="service_requests")
    op.drop_table("service_requests")
    op.drop_table("service_types")
    op.drop_table("technicians")
    op.drop_table("customers")
