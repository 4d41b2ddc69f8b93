"""Initial tables: repositories, security reports and their findings, risks, recommendations.

Revision ID: 20250301000000
Revises:
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20250301000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _report_fk() -> sa.Column:
    return sa.Column(
        "security_report_id",
        sa.Integer(),
        sa.ForeignKey("security_reports.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "repositories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=1024), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_repositories_project_id"), "repositories", ["project_id"])

    op.create_table(
        "security_reports",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "repo_id",
            sa.Integer(),
            sa.ForeignKey("repositories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("commit_sha", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="PENDING"),
        sa.Column("risk_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_vulnerabilities", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("critical_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("high_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("medium_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("low_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "scan_date",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("scan_duration", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'SCANNING', 'COMPLETED', 'FAILED')",
            name="ck_security_reports_status",
        ),
        sa.CheckConstraint(
            "risk_score >= 0 AND risk_score <= 100",
            name="ck_security_reports_risk_score",
        ),
    )
    op.create_index(op.f("ix_security_reports_repo_id"), "security_reports", ["repo_id"])
    op.create_index(op.f("ix_security_reports_status"), "security_reports", ["status"])
    op.create_index(op.f("ix_security_reports_scan_date"), "security_reports", ["scan_date"])

    op.create_table(
        "vulnerabilities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _report_fk(),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("severity", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("file_path", sa.String(length=2048), nullable=True),
        sa.Column("line_number", sa.Integer(), nullable=True),
        sa.Column("code_snippet", sa.Text(), nullable=True),
        sa.Column("cve_id", sa.String(length=255), nullable=True),
        sa.Column("cvss_score", sa.Float(), nullable=True),
        sa.Column("package_name", sa.String(length=1024), nullable=True),
        sa.Column("package_version", sa.String(length=255), nullable=True),
        sa.Column("fixed_version", sa.String(length=255), nullable=True),
        sa.Column("owasp_category", sa.String(length=255), nullable=True),
        sa.Column("cwe_id", sa.String(length=64), nullable=True),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_vulnerabilities_security_report_id"), "vulnerabilities", ["security_report_id"]
    )
    op.create_index(op.f("ix_vulnerabilities_type"), "vulnerabilities", ["type"])
    op.create_index(op.f("ix_vulnerabilities_severity"), "vulnerabilities", ["severity"])

    op.create_table(
        "dependency_risks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _report_fk(),
        sa.Column("package_name", sa.String(length=1024), nullable=False),
        sa.Column("package_version", sa.String(length=255), nullable=False),
        sa.Column("package_manager", sa.String(length=32), nullable=False),
        sa.Column("is_deprecated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_vulnerabilities", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("license", sa.String(length=255), nullable=True),
        sa.Column("license_risk", sa.String(length=32), nullable=False, server_default="LOW"),
        sa.Column("direct_dependency", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("dependency_depth", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("suspicious_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("risk_level", sa.String(length=32), nullable=False, server_default="LOW"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_dependency_risks_security_report_id"), "dependency_risks", ["security_report_id"]
    )

    op.create_table(
        "security_recommendations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        _report_fk(),
        sa.Column("severity", sa.String(length=32), nullable=False),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "steps",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "related_vulnerability_ids",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("estimated_effort", sa.String(length=255), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("implemented", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "priority >= 1 AND priority <= 10",
            name="ck_security_recommendations_priority",
        ),
    )
    op.create_index(
        op.f("ix_security_recommendations_security_report_id"),
        "security_recommendations",
        ["security_report_id"],
    )
    op.create_index(
        op.f("ix_security_recommendations_priority"),
        "security_recommendations",
        ["priority"],
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_security_recommendations_priority"), table_name="security_recommendations"
    )
    op.drop_index(
        op.f("ix_security_recommendations_security_report_id"),
        table_name="security_recommendations",
    )
    op.drop_table("security_recommendations")
    op.drop_index(op.f("ix_dependency_risks_security_report_id"), table_name="dependency_risks")
    op.drop_table("dependency_risks")
    op.drop_index(op.f("ix_vulnerabilities_severity"), table_name="vulnerabilities")
    op.drop_index(op.f("ix_vulnerabilities_type"), table_name="vulnerabilities")
    op.drop_index(op.f("ix_vulnerabilities_security_report_id"), table_name="vulnerabilities")
    op.drop_table("vulnerabilities")
    op.drop_index(op.f("ix_security_reports_scan_date"), table_name="security_reports")
    op.drop_index(op.f("ix_security_reports_status"), table_name="security_reports")
    op.drop_index(op.f("ix_security_reports_repo_id"), table_name="security_reports")
    op.drop_table("security_reports")
    op.drop_index(op.f("ix_repositories_project_id"), table_name="repositories")
    op.drop_table("repositories")
