"""Create properties and property_amenities tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 10:05:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None

property_type = sa.Enum(
    'house', 'apartment', 'condo', 'townhouse', 'villa', 'duplex', 'studio', 'flat',
    'land', 'commercial', 'office',
    name='propertytype'
)
listing_type = sa.Enum('sale', 'rent', name='listingtype')
amenity = sa.Enum(
    'swimming_pool', 'gym', 'security', 'parking', 'balcony', 'garden', 'air_conditioning',
    'furnished', 'elevator', 'cctv', 'backup_generator', 'borehole', 'serviced', 'waterfront',
    'gated_estate',
    name='amenity'
)


def upgrade() -> None:
    op.create_table(
        'properties',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('property_type', property_type, nullable=False),
        sa.Column('listing_type', listing_type, nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bathrooms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('floor_area', sa.Integer(), nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('area', sa.String(100), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_index('ix_properties_id', 'properties', ['id'])
    op.create_index('ix_properties_property_type', 'properties', ['property_type'])
    op.create_index('ix_properties_listing_type', 'properties', ['listing_type'])
    op.create_index('ix_properties_price', 'properties', ['price'])
    op.create_index('ix_properties_state', 'properties', ['state'])
    op.create_index('ix_properties_area', 'properties', ['area'])
    op.create_index('ix_properties_is_featured', 'properties', ['is_featured'])
    op.create_index('ix_properties_created_at', 'properties', ['created_at'])

    op.create_table(
        'property_amenities',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('amenity', amenity, nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('property_id', 'amenity', name='uq_property_amenity'),
    )

    op.create_index('ix_property_amenities_property_id', 'property_amenities', ['property_id'])
    op.create_index('ix_property_amenities_amenity', 'property_amenities', ['amenity'])


def downgrade() -> None:
    op.drop_index('ix_property_amenities_amenity', table_name='property_amenities')
    op.drop_index('ix_property_amenities_property_id', table_name='property_amenities')
    op.drop_table('property_amenities')

    for index in ('created_at', 'is_featured', 'area', 'state', 'price', 'listing_type', 'property_type', 'id'):
        op.drop_index(f'ix_properties_{index}', table_name='properties')
    op.drop_table('properties')

    bind = op.get_bind()
    amenity.drop(bind, checkfirst=True)
    listing_type.drop(bind, checkfirst=True)
    property_type.drop(bind, checkfirst=True)
