"""initial classroom schema

Revision ID: 20251019_01
Revises:
Create Date: 2025-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '20251019_01'
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.Enum('student', 'teacher', 'admin', name='role'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'subjects',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
    )

    op.create_table(
        'notions',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('subject_id', UUID, sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_notions_subject_id', 'notions', ['subject_id'])

    op.create_table(
        'lessons',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('subject_id', UUID, sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('created_by', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_lessons_subject_id', 'lessons', ['subject_id'])

    op.create_table(
        'lesson_notions',
        sa.Column('lesson_id', UUID, sa.ForeignKey('lessons.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('notion_id', UUID, sa.ForeignKey('notions.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'exercises',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('lesson_id', UUID, sa.ForeignKey('lessons.id'), nullable=False),
        sa.Column(
            'kind',
            sa.Enum('multiple_choice', 'free_text', 'code', name='exercisekind'),
            nullable=False,
        ),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('time_limit_minutes', sa.Integer(), nullable=True),
        sa.Column('created_by', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_exercises_lesson_id', 'exercises', ['lesson_id'])

    op.create_table(
        'exercise_options',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('exercise_id', UUID, sa.ForeignKey('exercises.id', ondelete='CASCADE'), nullable=False),
        sa.Column('option_text', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_exercise_options_exercise_id', 'exercise_options', ['exercise_id'])

    op.create_table(
        'submissions',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('exercise_id', UUID, sa.ForeignKey('exercises.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', UUID, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_seconds', sa.Integer(), nullable=False),
        sa.Column('answer_text', sa.Text(), nullable=False),
        sa.Column('selected_options', sa.JSON(), nullable=True),
    )
    op.create_index('ix_submissions_exercise_id', 'submissions', ['exercise_id'])
    op.create_index('ix_submissions_student_id', 'submissions', ['student_id'])

    op.create_table(
        'grades',
        sa.Column('id', UUID, primary_key=True),
        sa.Column(
            'submission_id',
            UUID,
            sa.ForeignKey('submissions.id', ondelete='CASCADE'),
            nullable=False,
            unique=True,
        ),
        sa.Column('teacher_id', UUID, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('grade', sa.Integer(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('graded_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('grade >= 1 AND grade <= 5', name='ck_grades_grade_range'),
    )


def downgrade():
    op.drop_table('grades')
    op.drop_index('ix_submissions_student_id', table_name='submissions')
    op.drop_index('ix_submissions_exercise_id', table_name='submissions')
    op.drop_table('submissions')
    op.drop_index('ix_exercise_options_exercise_id', table_name='exercise_options')
    op.drop_table('exercise_options')
    op.drop_index('ix_exercises_lesson_id', table_name='exercises')
    op.drop_table('exercises')
    op.drop_table('lesson_notions')
    op.drop_index('ix_lessons_subject_id', table_name='lessons')
    op.drop_table('lessons')
    op.drop_index('ix_notions_subject_id', table_name='notions')
    op.drop_table('notions')
    op.drop_table('subjects')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    sa.Enum(name='exercisekind').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='role').drop(op.get_bind(), checkfirst=True)
