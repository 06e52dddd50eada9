"""discovery_schema

Users, books, genres, reviews, follow edges and activities.

Revision ID: 3c91d7e0a2b4
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c91d7e0a2b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False, comment='Unique username for profile URLs'),
        sa.Column('email', sa.String(length=255), nullable=True, comment='Contact email address'),
        sa.Column('role', sa.String(length=20), nullable=False, comment='Account role (reader, writer, admin)'),
        sa.Column('full_name', sa.String(length=255), nullable=True, comment="User's full display name"),
        sa.Column('avatar_url', sa.Text(), nullable=True, comment="URL to user's avatar image"),
        sa.Column('bio', sa.Text(), nullable=True, comment='Short biography'),
        sa.Column('profile', sa.Text(), nullable=True, comment='Long-form writer profile'),
        sa.Column('is_active', sa.Boolean(), nullable=False, comment='Whether the account is active'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table(
        'genres',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False, comment="Genre name (e.g., 'Fantasy', 'Memoir')"),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_genres_name'), 'genres', ['name'], unique=True)

    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('writer_id', sa.Integer(), nullable=False, comment='Owning writer'),
        sa.Column('title', sa.String(length=500), nullable=False, comment='Book title'),
        sa.Column('description', sa.Text(), nullable=True, comment='Book description or summary'),
        sa.Column('category', sa.String(length=100), nullable=True, comment='Marketplace category'),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=True, comment='Book price in USD'),
        sa.Column('cover_image', sa.Text(), nullable=True, comment='URL of the cover image'),
        sa.Column('language', sa.String(length=50), nullable=True, comment='Language the book is written in'),
        sa.Column('pages', sa.Integer(), nullable=True, comment='Number of pages in the book'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='draft or published'),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True, comment='When the book was published'),
        sa.Column(
            'average_rating',
            sa.Numeric(precision=3, scale=2),
            nullable=False,
            server_default='0',
            comment='Mean review rating rounded to 2 decimals (0 when unreviewed)'
        ),
        sa.Column('review_count', sa.Integer(), nullable=False, server_default='0', comment='Number of reviews'),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0', comment='Page view counter'),
        sa.Column('sales', sa.Integer(), nullable=False, server_default='0', comment='Completed sales counter'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['writer_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_books_writer_id'), 'books', ['writer_id'], unique=False)
    op.create_index(op.f('ix_books_title'), 'books', ['title'], unique=False)
    op.create_index(op.f('ix_books_category'), 'books', ['category'], unique=False)
    op.create_index(op.f('ix_books_status'), 'books', ['status'], unique=False)
    op.create_index(op.f('ix_books_published_at'), 'books', ['published_at'], unique=False)

    op.create_table(
        'book_genres',
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('genre_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['genre_id'], ['genres.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('book_id', 'genre_id'),
        comment='Association table linking books to their genres',
    )

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False, comment='Rating from 1-5 stars'),
        sa.Column('content', sa.Text(), nullable=True, comment='Review text content'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('book_id', 'user_id', name='uq_review_book_user'),
    )
    op.create_index(op.f('ix_reviews_id'), 'reviews', ['id'], unique=False)
    op.create_index(op.f('ix_reviews_book_id'), 'reviews', ['book_id'], unique=False)
    op.create_index(op.f('ix_reviews_user_id'), 'reviews', ['user_id'], unique=False)

    op.create_table(
        'follows',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('follower_id', sa.Integer(), nullable=False),
        sa.Column('following_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('follower_id <> following_id', name='ck_follow_not_self'),
        sa.ForeignKeyConstraint(['follower_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['following_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('follower_id', 'following_id', name='uq_follow_pair'),
    )
    op.create_index('ix_follows_follower_created', 'follows', ['follower_id', 'created_at'], unique=False)
    op.create_index('ix_follows_following_created', 'follows', ['following_id', 'created_at'], unique=False)

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('activity_type', sa.String(length=32), nullable=False),
        sa.Column('target_id', sa.Integer(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_activities_user_id'), 'activities', ['user_id'], unique=False)
    op.create_index('ix_activities_user_created', 'activities', ['user_id', 'created_at'], unique=False)
    op.create_index('ix_activities_type_created', 'activities', ['activity_type', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_activities_type_created', table_name='activities')
    op.drop_index('ix_activities_user_created', table_name='activities')
    op.drop_index(op.f('ix_activities_user_id'), table_name='activities')
    op.drop_table('activities')
    op.drop_index('ix_follows_following_created', table_name='follows')
    op.drop_index('ix_follows_follower_created', table_name='follows')
    op.drop_table('follows')
    op.drop_index(op.f('ix_reviews_user_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_book_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_id'), table_name='reviews')
    op.drop_table('reviews')
    op.drop_table('book_genres')
    op.drop_index(op.f('ix_books_published_at'), table_name='books')
    op.drop_index(op.f('ix_books_status'), table_name='books')
    op.drop_index(op.f('ix_books_category'), table_name='books')
    op.drop_index(op.f('ix_books_title'), table_name='books')
    op.drop_index(op.f('ix_books_writer_id'), table_name='books')
    op.drop_table('books')
    op.drop_index(op.f('ix_genres_name'), table_name='genres')
    op.drop_table('genres')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
