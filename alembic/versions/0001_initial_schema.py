"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    ]


def _create_table(name, *columns):
    op.create_table(name, *_base_columns(), *columns, sa.PrimaryKeyConstraint('id'))
    op.create_index(f'ix_{name}_id', name, ['id'])


def upgrade() -> None:
    _create_table(
        'teachers',
        sa.Column('full_name', sa.String(150), nullable=False),
        sa.Column('nip', sa.String(30), unique=True),
        sa.Column('phone', sa.String(20)),
    )
    _create_table(
        'academic_years',
        sa.Column('name', sa.String(20), nullable=False, unique=True),
        sa.Column('start_year', sa.Integer()),
        sa.Column('end_year', sa.Integer()),
        sa.Column('start_date', sa.Date()),
        sa.Column('end_date', sa.Date()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    _create_table(
        'curricula',
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(30), nullable=False, unique=True),
        sa.Column('year', sa.String(10), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    _create_table(
        'classes',
        sa.Column('class_name', sa.String(10), nullable=False, unique=True),
    )
    _create_table(
        'subjects',
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('subject_code', sa.String(20), unique=True),
        sa.Column('kkm', sa.Integer()),
    )
    _create_table(
        'assessment_types',
        sa.Column('code', sa.String(20), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('default_weight', sa.Integer()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    _create_table(
        'rombels',
        sa.Column('code', sa.String(60), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('academic_year_id', sa.Integer(), sa.ForeignKey('academic_years.id'), nullable=False),
        sa.Column('class_advisor_id', sa.Integer(), sa.ForeignKey('teachers.id')),
        sa.Column('curriculum_id', sa.Integer(), sa.ForeignKey('curricula.id')),
        sa.Column('student_capacity', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('classroom', sa.String(50)),
        sa.CheckConstraint('student_capacity > 0', name='ck_rombel_capacity_positive'),
    )
    op.create_index('ix_rombels_class_id', 'rombels', ['class_id'])
    op.create_index('ix_rombels_academic_year_id', 'rombels', ['academic_year_id'])

    _create_table(
        'students',
        sa.Column('nisn', sa.String(20), nullable=False, unique=True),
        sa.Column('local_nis', sa.String(20), unique=True),
        sa.Column('student_name', sa.String(150), nullable=False),
        sa.Column('gender', sa.String(10)),
        sa.Column('religion', sa.String(30)),
        sa.Column('birth_place', sa.String(100)),
        sa.Column('birth_date', sa.Date()),
        sa.Column('previous_school', sa.String(150)),
        sa.Column('phone_number', sa.String(20)),
        sa.Column('nationality', sa.String(50)),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('rombel_id', sa.Integer(), sa.ForeignKey('rombels.id')),
    )
    op.create_index('ix_students_status', 'students', ['status'])
    op.create_index('ix_students_rombel_id', 'students', ['rombel_id'])

    _create_table(
        'rombel_students',
        sa.Column('rombel_id', sa.Integer(), sa.ForeignKey('rombels.id'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('left_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_rombel_students_rombel_id', 'rombel_students', ['rombel_id'])
    op.create_index('ix_rombel_students_student_id', 'rombel_students', ['student_id'])
    op.create_index('idx_rombel_students_active', 'rombel_students', ['student_id', 'is_active'])
    op.create_index('idx_rombel_students_rombel_active', 'rombel_students', ['rombel_id', 'is_active'])

    _create_table(
        'student_histories',
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('rombel_id', sa.Integer(), sa.ForeignKey('rombels.id')),
        sa.Column('status_type', sa.String(20), nullable=False),
        sa.Column('scores', sa.JSON()),
        sa.Column('reason', sa.Text()),
        sa.Column('mutasi_type', sa.String(50)),
        sa.Column('destination_school', sa.String(150)),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.Column('graduation_year', sa.String(9)),
        sa.Column('certificate_number', sa.String(50)),
        sa.Column('final_grade', sa.Numeric(5, 2)),
    )
    op.create_index('ix_student_histories_student_id', 'student_histories', ['student_id'])
    op.create_index('ix_student_histories_rombel_id', 'student_histories', ['rombel_id'])
    op.create_index('ix_student_histories_status_type', 'student_histories', ['status_type'])
    op.create_index('ix_student_histories_graduation_year', 'student_histories', ['graduation_year'])

    _create_table(
        'student_attendance',
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rombel_id', sa.Integer(), sa.ForeignKey('rombels.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(10), nullable=False),
        sa.Column('check_in_time', sa.Time()),
        sa.Column('check_out_time', sa.Time()),
        sa.Column('note', sa.Text()),
        sa.UniqueConstraint('student_id', 'rombel_id', 'date', name='uq_student_attendance'),
        sa.CheckConstraint("status IN ('hadir', 'sakit', 'izin', 'alpha')", name='ck_attendance_status'),
    )
    op.create_index('idx_student_attendance_student', 'student_attendance', ['student_id'])
    op.create_index('idx_student_attendance_date', 'student_attendance', ['date'])

    _create_table(
        'class_subjects',
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id')),
        sa.UniqueConstraint('class_id', 'subject_id', name='uq_class_subject'),
    )
    op.create_index('ix_class_subjects_class_id', 'class_subjects', ['class_id'])

    _create_table(
        'student_scores',
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'class_subject_id', sa.Integer(),
            sa.ForeignKey('class_subjects.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('assessment_type_id', sa.Integer(), sa.ForeignKey('assessment_types.id'), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('assessment_date', sa.Date()),
        sa.Column('note', sa.Text()),
        sa.UniqueConstraint(
            'student_id', 'class_subject_id', 'assessment_type_id', name='uq_student_assessment'
        ),
    )
    op.create_index('ix_student_scores_student_id', 'student_scores', ['student_id'])
    op.create_index('ix_student_scores_class_subject_id', 'student_scores', ['class_subject_id'])

    _create_table(
        'audit_logs',
        sa.Column('audit_type', sa.String(30), nullable=False),
        sa.Column('user_id', sa.String(100), nullable=False),
        sa.Column('action', sa.String(255), nullable=False),
        sa.Column('target', sa.String(255)),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('metadata', sa.JSON()),
        sa.Column('ip_address', sa.String(64)),
        sa.Column('user_agent', sa.Text()),
    )
    op.create_index('ix_audit_logs_audit_type', 'audit_logs', ['audit_type'])


def downgrade() -> None:
    for table in (
        'audit_logs',
        'student_scores',
        'class_subjects',
        'student_attendance',
        'student_histories',
        'rombel_students',
        'students',
        'rombels',
        'assessment_types',
        'subjects',
        'classes',
        'curricula',
        'academic_years',
        'teachers',
    ):
        op.drop_table(table)
