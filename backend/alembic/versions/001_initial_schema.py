"""Initial database schema - companies, users, roles, catalog, tables, orders, marketing, stock, payments, platform

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUM_LEN = 32


def _id():
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _fk(name, target, ondelete="CASCADE", nullable=False):
    return sa.Column(
        name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable
    )


def _company_fk():
    return _fk("company_id", "companies.id")


def _money(name, nullable=False, default="0.00"):
    if nullable:
        return sa.Column(name, sa.Numeric(12, 2))
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default=sa.text(default))


def upgrade() -> None:
    # --- RBAC ---
    op.create_table(
        "roles",
        _id(),
        sa.Column("name", sa.String(ENUM_LEN), nullable=False, unique=True),
        sa.Column("description", sa.String(255)),
        *_timestamps(),
    )
    op.create_index("ix_roles_name", "roles", ["name"])

    op.create_table(
        "permissions",
        _id(),
        sa.Column("action", sa.String(ENUM_LEN), nullable=False, unique=True),
        sa.Column("description", sa.String(255)),
    )
    op.create_index("ix_permissions_action", "permissions", ["action"])

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("role_id", "roles.id"),
        _fk("permission_id", "permissions.id"),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    # --- Companies (owner FK added after users) ---
    op.create_table(
        "companies",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("status", sa.String(ENUM_LEN), nullable=False, server_default="pending"),
        sa.Column("menu_published", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_open", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("address", sa.Text),
        sa.Column("phone", sa.String(20)),
        sa.Column("logo_url", sa.String(500)),
        _money("delivery_fee"),
        _money("min_order_value", nullable=True),
        sa.Column("estimated_delivery_minutes", sa.Integer),
        sa.Column("subscription_plan", sa.String(50), nullable=False, server_default="free"),
        sa.Column("subscription_end_date", sa.DateTime(timezone=True)),
        _money("monthly_revenue"),
        _money("revenue_limit_bonus"),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True)),
        *_timestamps(),
    )
    op.create_index("ix_companies_slug", "companies", ["slug"])
    op.create_index("ix_companies_status", "companies", ["status"])
    op.create_index("ix_companies_owner_id", "companies", ["owner_id"])

    # --- Users ---
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _fk("company_id", "companies.id", nullable=True),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("roles.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_company_id", "users", ["company_id"])
    op.create_index("ix_users_role_id", "users", ["role_id"])
    op.create_foreign_key(
        "fk_companies_owner_id_users", "companies", "users", ["owner_id"], ["id"], ondelete="SET NULL"
    )

    # --- Catalog ---
    op.create_table(
        "categories",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(500)),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _money("base_price", nullable=True),
        _company_fk(),
        *_timestamps(),
        sa.UniqueConstraint("company_id", "name", name="uq_categories_company_name"),
    )
    op.create_index("ix_categories_name", "categories", ["name"])
    op.create_index("ix_categories_company_id", "categories", ["company_id"])

    op.create_table(
        "products",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        _money("price"),
        _money("promotional_price", nullable=True),
        sa.Column("image_url", sa.String(500)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("requires_preparation", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        _company_fk(),
        _fk("category_id", "categories.id", ondelete="SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_company_active", "products", ["company_id", "is_active"])

    op.create_table(
        "product_options",
        _id(),
        sa.Column("group_name", sa.String(100), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        _money("price_modifier"),
        sa.Column("is_size", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        _fk("product_id", "products.id"),
    )
    op.create_index("ix_product_options_product_id", "product_options", ["product_id"])

    op.create_table(
        "pizza_category_settings",
        _id(),
        sa.Column("allow_half_half", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("max_flavors", sa.Integer, nullable=False, server_default=sa.text("2")),
        sa.Column("half_half_pricing_rule", sa.String(ENUM_LEN), nullable=False, server_default="average"),
        sa.Column("half_half_discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("allow_repeated_flavors", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column(
            "category_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        _company_fk(),
    )
    op.create_index("ix_pizza_category_settings_company_id", "pizza_category_settings", ["company_id"])

    op.create_table(
        "pizza_sizes",
        _id(),
        sa.Column("name", sa.String(50), nullable=False),
        _money("base_price"),
        sa.Column("max_flavors", sa.Integer, nullable=False, server_default=sa.text("2")),
        sa.Column("slices", sa.Integer, nullable=False, server_default=sa.text("8")),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        _fk("category_id", "categories.id"),
    )
    op.create_index("ix_pizza_sizes_category_id", "pizza_sizes", ["category_id"])

    # --- Customers ---
    op.create_table(
        "customers",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False, unique=True),
        sa.Column("email", sa.String(255)),
        sa.Column("address", sa.Text),
        *_timestamps(),
    )
    op.create_index("ix_customers_phone", "customers", ["phone"])
    op.create_index("ix_customers_email", "customers", ["email"])

    # --- Tables ---
    op.create_table(
        "tables",
        _id(),
        sa.Column("table_number", sa.Integer, nullable=False),
        sa.Column("name", sa.String(100)),
        sa.Column("capacity", sa.Integer),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _company_fk(),
        *_timestamps(),
        sa.UniqueConstraint("company_id", "table_number", name="uq_tables_company_number"),
    )
    op.create_index("ix_tables_company_id", "tables", ["company_id"])

    op.create_table(
        "table_sessions",
        _id(),
        sa.Column("session_token", sa.String(64), nullable=False, unique=True),
        sa.Column("status", sa.String(ENUM_LEN), nullable=False, server_default="open"),
        sa.Column("opened_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("closed_at", sa.DateTime(timezone=True)),
        sa.Column("customer_name", sa.String(255)),
        sa.Column("customer_phone", sa.String(20)),
        sa.Column("customer_email", sa.String(255)),
        sa.Column("customer_count", sa.Integer, nullable=False, server_default=sa.text("1")),
        _fk("table_id", "tables.id"),
        _company_fk(),
    )
    op.create_index("ix_table_sessions_session_token", "table_sessions", ["session_token"])
    op.create_index("ix_table_sessions_company_id", "table_sessions", ["company_id"])
    op.create_index("ix_table_sessions_table_status", "table_sessions", ["table_id", "status"])

    op.create_table(
        "delivery_drivers",
        _id(),
        sa.Column("driver_name", sa.String(255), nullable=False),
        sa.Column("driver_phone", sa.String(20)),
        sa.Column("vehicle_type", sa.String(20), nullable=False, server_default="moto"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("driver_status", sa.String(ENUM_LEN), nullable=False, server_default="available"),
        _company_fk(),
        _fk("user_id", "users.id", ondelete="SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_delivery_drivers_company_id", "delivery_drivers", ["company_id"])

    # --- Orders ---
    op.create_table(
        "orders",
        _id(),
        sa.Column("order_number", sa.String(50), nullable=False, unique=True),
        sa.Column("status", sa.String(ENUM_LEN), nullable=False, server_default="pending"),
        sa.Column("order_type", sa.String(ENUM_LEN), nullable=False, server_default="delivery"),
        sa.Column("payment_method", sa.String(ENUM_LEN), nullable=False),
        sa.Column("payment_status", sa.String(ENUM_LEN), nullable=False, server_default="pending"),
        _money("subtotal"),
        _money("discount_amount"),
        _money("delivery_fee"),
        _money("total"),
        sa.Column("coupon_code", sa.String(50)),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(20), nullable=False),
        sa.Column("customer_email", sa.String(255)),
        sa.Column("delivery_address", sa.Text),
        _money("change_for", nullable=True),
        sa.Column("note", sa.Text),
        sa.Column("estimated_delivery_time", sa.DateTime(timezone=True)),
        sa.Column("cancellation_reason", sa.Text),
        _company_fk(),
        _fk("customer_id", "customers.id", ondelete="SET NULL", nullable=True),
        _fk("table_session_id", "table_sessions.id", ondelete="SET NULL", nullable=True),
        _fk("delivery_driver_id", "delivery_drivers.id", ondelete="SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"])
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_company_created", "orders", ["company_id", "created_at"])
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])
    op.create_index("ix_orders_table_session_id", "orders", ["table_session_id"])
    op.create_index("ix_orders_delivery_driver_id", "orders", ["delivery_driver_id"])

    # --- Promotions (before order_items, which reference them) ---
    op.create_table(
        "promotions",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("discount_type", sa.String(ENUM_LEN), nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        sa.Column("image_url", sa.String(500)),
        sa.Column("apply_to_all_sizes", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _company_fk(),
        _fk("product_id", "products.id", nullable=True),
        _fk("category_id", "categories.id", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_promotions_company_id", "promotions", ["company_id"])

    op.create_table(
        "promotion_sizes",
        _id(),
        _fk("promotion_id", "promotions.id"),
        _fk("product_option_id", "product_options.id"),
        sa.UniqueConstraint("promotion_id", "product_option_id", name="uq_promotion_size"),
    )
    op.create_index("ix_promotion_sizes_promotion_id", "promotion_sizes", ["promotion_id"])
    op.create_index("ix_promotion_sizes_product_option_id", "promotion_sizes", ["product_option_id"])

    op.create_table(
        "order_items",
        _id(),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("options", postgresql.JSONB),
        sa.Column("notes", sa.Text),
        sa.Column("requires_preparation", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _fk("order_id", "orders.id"),
        _fk("product_id", "products.id", ondelete="SET NULL", nullable=True),
        _fk("promotion_id", "promotions.id", ondelete="SET NULL", nullable=True),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    op.create_table(
        "coupons",
        _id(),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("discount_type", sa.String(ENUM_LEN), nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        _money("min_order_value", nullable=True),
        sa.Column("max_uses", sa.Integer),
        sa.Column("current_uses", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _company_fk(),
        *_timestamps(),
        sa.UniqueConstraint("company_id", "code", name="uq_coupons_company_code"),
    )
    op.create_index("ix_coupons_company_id", "coupons", ["company_id"])

    op.create_table(
        "promotion_events",
        _id(),
        sa.Column("event_type", sa.String(ENUM_LEN), nullable=False),
        sa.Column("session_id", sa.String(64)),
        _money("revenue", nullable=True),
        _fk("promotion_id", "promotions.id"),
        _company_fk(),
        _fk("order_id", "orders.id", ondelete="SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_promotion_events_promo_type", "promotion_events", ["promotion_id", "event_type"])

    # --- Lottery ---
    op.create_table(
        "lottery_settings",
        _id(),
        sa.Column("is_enabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("tickets_per_order", sa.Integer, nullable=False, server_default=sa.text("1")),
        _money("tickets_per_amount"),
        sa.Column("prize_description", sa.Text),
        sa.Column("draw_frequency", sa.String(20), nullable=False, server_default="monthly"),
        sa.Column(
            "company_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        *_timestamps(),
    )

    op.create_table(
        "lottery_draws",
        _id(),
        sa.Column("drawn_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("prize_description", sa.Text, nullable=False),
        sa.Column("total_tickets_in_draw", sa.Integer, nullable=False),
        sa.Column("winner_tickets_count", sa.Integer, nullable=False),
        sa.Column("winner_name", sa.String(255)),
        sa.Column("winner_phone", sa.String(20)),
        _company_fk(),
        _fk("winner_customer_id", "customers.id", ondelete="SET NULL", nullable=True),
    )
    op.create_index("ix_lottery_draws_company_id", "lottery_draws", ["company_id"])

    op.create_table(
        "lottery_tickets",
        _id(),
        sa.Column("quantity", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("is_used", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("earned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        _company_fk(),
        _fk("customer_id", "customers.id"),
        _fk("order_id", "orders.id", ondelete="SET NULL", nullable=True),
        _fk("used_in_draw_id", "lottery_draws.id", ondelete="SET NULL", nullable=True),
    )
    op.create_index("ix_lottery_tickets_company_used", "lottery_tickets", ["company_id", "is_used"])
    op.create_index("ix_lottery_tickets_customer_id", "lottery_tickets", ["customer_id"])
    op.create_index("ix_lottery_tickets_used_in_draw_id", "lottery_tickets", ["used_in_draw_id"])

    # --- Ingredient stock ---
    op.create_table(
        "inventory_ingredients",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(20), nullable=False, server_default="un"),
        sa.Column("current_stock", sa.Numeric(12, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("min_stock", sa.Numeric(12, 3), nullable=False, server_default=sa.text("0")),
        _money("unit_cost", nullable=True),
        _company_fk(),
        *_timestamps(),
        sa.UniqueConstraint("company_id", "name", name="uq_ingredients_company_name"),
    )
    op.create_index("ix_inventory_ingredients_company_id", "inventory_ingredients", ["company_id"])

    op.create_table(
        "inventory_product_ingredients",
        _id(),
        sa.Column("quantity_per_unit", sa.Numeric(12, 3), nullable=False),
        _fk("product_id", "products.id"),
        _fk("ingredient_id", "inventory_ingredients.id"),
        _company_fk(),
        sa.UniqueConstraint("product_id", "ingredient_id", name="uq_product_ingredient"),
    )
    op.create_index("ix_inventory_product_ingredients_product_id", "inventory_product_ingredients", ["product_id"])
    op.create_index("ix_inventory_product_ingredients_company_id", "inventory_product_ingredients", ["company_id"])

    # --- Payments ---
    op.create_table(
        "company_payment_settings",
        _id(),
        sa.Column("accepts_cash", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("accepts_card_on_delivery", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("accepts_pix", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("pix_key", sa.String(255)),
        sa.Column("pix_key_type", sa.String(20)),
        sa.Column("pix_holder_name", sa.String(255)),
        sa.Column("online_gateway", sa.String(ENUM_LEN)),
        sa.Column("gateway_public_key", sa.String(255)),
        sa.Column("gateway_secret", sa.String(255)),
        sa.Column(
            "company_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        *_timestamps(),
    )

    op.create_table(
        "payment_transactions",
        _id(),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("gateway", sa.String(ENUM_LEN), nullable=False),
        sa.Column("status", sa.String(ENUM_LEN), nullable=False, server_default="pending"),
        sa.Column("gateway_charge_id", sa.String(255), unique=True),
        sa.Column("gateway_response", postgresql.JSONB),
        _company_fk(),
        _fk("order_id", "orders.id"),
        *_timestamps(),
    )
    op.create_index("ix_payment_transactions_status", "payment_transactions", ["status"])
    op.create_index("ix_payment_transactions_order_id", "payment_transactions", ["order_id"])
    op.create_index("ix_payment_transactions_gateway_charge_id", "payment_transactions", ["gateway_charge_id"])
    op.create_index(
        "ix_payment_transactions_company_created", "payment_transactions", ["company_id", "created_at"]
    )

    # --- Subscriptions ---
    op.create_table(
        "subscription_plans",
        _id(),
        sa.Column("key", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("revenue_limit", sa.Numeric(12, 2), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    op.create_table(
        "subscription_payments",
        _id(),
        sa.Column("plan_key", sa.String(50), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("gateway_reference", sa.String(255)),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("period_start", sa.DateTime(timezone=True)),
        sa.Column("period_end", sa.DateTime(timezone=True)),
        _company_fk(),
        *_timestamps(),
    )
    op.create_index("ix_subscription_payments_company_id", "subscription_payments", ["company_id"])

    # --- Platform ---
    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.Text, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "release_notes",
        _id(),
        sa.Column("version", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("note_type", sa.String(20), nullable=False, server_default="feature"),
        sa.Column("release_date", sa.Date, nullable=False),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_release_notes_version", "release_notes", ["version"])

    op.create_table(
        "portal_posts",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="news"),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("published_at", sa.DateTime(timezone=True)),
        _fk("author_id", "users.id", ondelete="SET NULL", nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "notifications",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("notification_type", sa.String(20), nullable=False, server_default="info"),
        sa.Column("data", postgresql.JSONB),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.text("false")),
        _fk("user_id", "users.id"),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    for table in (
        "notifications",
        "portal_posts",
        "release_notes",
        "system_settings",
        "subscription_payments",
        "subscription_plans",
        "payment_transactions",
        "company_payment_settings",
        "inventory_product_ingredients",
        "inventory_ingredients",
        "lottery_tickets",
        "lottery_draws",
        "lottery_settings",
        "promotion_events",
        "coupons",
        "order_items",
        "promotion_sizes",
        "promotions",
        "orders",
        "delivery_drivers",
        "table_sessions",
        "tables",
        "customers",
        "pizza_sizes",
        "pizza_category_settings",
        "product_options",
        "products",
        "categories",
    ):
        op.drop_table(table)
    op.drop_constraint("fk_companies_owner_id_users", "companies", type_="foreignkey")
    op.drop_table("users")
    op.drop_table("companies")
    op.drop_table("role_permissions")
    op.drop_table("permissions")
    op.drop_table("roles")
