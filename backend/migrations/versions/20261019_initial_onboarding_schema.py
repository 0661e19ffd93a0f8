"""Initial onboarding schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. merchants (committed point-of-sale records)
2. equipment_profiles, equipment_items (stand power/equipment needs)
3. menu_categories, menu_products (menu, prices in cents)
4. vendor_banners (one banner per merchant)
5. vendor_status (one row per tax document, links everything above)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. MERCHANTS
    # ==========================================================================
    op.create_table('merchants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pdv_name', sa.String(length=255), nullable=False),
        sa.Column('person_type', sa.String(length=2), nullable=False, server_default='PF'),
        sa.Column('cpf_cnpj', sa.String(length=14), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('address_full', sa.Text(), nullable=True),
        sa.Column('address_city', sa.String(length=128), nullable=True),
        sa.Column('address_state', sa.String(length=64), nullable=True),
        sa.Column('address_zipcode', sa.String(length=16), nullable=True),
        sa.Column('bank_account_type', sa.String(length=16), nullable=True),
        sa.Column('bank_name', sa.String(length=255), nullable=True),
        sa.Column('bank_agency', sa.String(length=32), nullable=True),
        sa.Column('bank_account', sa.String(length=32), nullable=True),
        sa.Column('bank_holder_doc', sa.String(length=32), nullable=True),
        sa.Column('bank_holder_name', sa.String(length=255), nullable=True),
        sa.Column('pix_key', sa.String(length=255), nullable=True),
        sa.Column('machines_qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('merchants', schema=None) as batch_op:
        batch_op.create_index('ix_merchants_cpf_cnpj', ['cpf_cnpj'], unique=False)

    # ==========================================================================
    # 2. EQUIPMENT
    # ==========================================================================
    op.create_table('equipment_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('merchant_id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.String(length=14), nullable=False),
        sa.Column('outlets110', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('outlets220', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('other_outlets_qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('other_outlets_label', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('equipment_profiles', schema=None) as batch_op:
        batch_op.create_index('ix_equipment_profiles_merchant', ['merchant_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_equipment_profiles_vendor_id'), ['vendor_id'], unique=False)

    op.create_table('equipment_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('equipment_profile_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['equipment_profile_id'], ['equipment_profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('equipment_items', schema=None) as batch_op:
        batch_op.create_index('ix_equipment_items_profile_position', ['equipment_profile_id', 'position'], unique=False)

    # ==========================================================================
    # 3. MENU
    # ==========================================================================
    op.create_table('menu_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('merchant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('menu_categories', schema=None) as batch_op:
        batch_op.create_index('ix_menu_categories_merchant_position', ['merchant_id', 'position'], unique=False)

    op.create_table('menu_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('merchant_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=40), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id'], ),
        sa.ForeignKeyConstraint(['category_id'], ['menu_categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('menu_products', schema=None) as batch_op:
        batch_op.create_index('ix_menu_products_category_position', ['category_id', 'position'], unique=False)
        batch_op.create_index('ix_menu_products_merchant', ['merchant_id'], unique=False)

    # ==========================================================================
    # 4. BANNERS
    # ==========================================================================
    op.create_table('vendor_banners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('merchant_id', sa.Integer(), nullable=False),
        sa.Column('banner_name', sa.String(length=28), nullable=False),
        sa.Column('theme', sa.String(length=16), nullable=False, server_default='classic'),
        sa.Column('accent', sa.String(length=16), nullable=False, server_default='orange'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('merchant_id', name='uq_vendor_banners_merchant'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 5. VENDOR STATUS
    # ==========================================================================
    op.create_table('vendor_status',
        sa.Column('vendor_id', sa.String(length=14), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='selecionado'),
        sa.Column('merchant_id', sa.Integer(), nullable=True),
        sa.Column('equipment_profile_id', sa.Integer(), nullable=True),
        sa.Column('banner_profile_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id'], ),
        sa.ForeignKeyConstraint(['equipment_profile_id'], ['equipment_profiles.id'], ),
        sa.ForeignKeyConstraint(['banner_profile_id'], ['vendor_banners.id'], ),
        sa.PrimaryKeyConstraint('vendor_id')
    )
    with op.batch_alter_table('vendor_status', schema=None) as batch_op:
        batch_op.create_index('ix_vendor_status_status', ['status'], unique=False)


def downgrade():
    with op.batch_alter_table('vendor_status', schema=None) as batch_op:
        batch_op.drop_index('ix_vendor_status_status')
    op.drop_table('vendor_status')

    op.drop_table('vendor_banners')

    with op.batch_alter_table('menu_products', schema=None) as batch_op:
        batch_op.drop_index('ix_menu_products_merchant')
        batch_op.drop_index('ix_menu_products_category_position')
    op.drop_table('menu_products')

    with op.batch_alter_table('menu_categories', schema=None) as batch_op:
        batch_op.drop_index('ix_menu_categories_merchant_position')
    op.drop_table('menu_categories')

    with op.batch_alter_table('equipment_items', schema=None) as batch_op:
        batch_op.drop_index('ix_equipment_items_profile_position')
    op.drop_table('equipment_items')

    with op.batch_alter_table('equipment_profiles', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_equipment_profiles_vendor_id'))
        batch_op.drop_index('ix_equipment_profiles_merchant')
    op.drop_table('equipment_profiles')

    with op.batch_alter_table('merchants', schema=None) as batch_op:
        batch_op.drop_index('ix_merchants_cpf_cnpj')
    op.drop_table('merchants')
