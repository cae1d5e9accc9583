"""SQLAlchemy models for MenuPro."""

from app.models.company import Company, CompanyStatus
from app.models.role import Role, Permission, RolePermission
from app.models.user import User
from app.models.category import Category
from app.models.product import Product, ProductOption
from app.models.customer import Customer
from app.models.driver import DeliveryDriver
from app.models.table import Table, TableSession
from app.models.order import Order, OrderItem
from app.models.promotion import Promotion, PromotionSize, Coupon, PromotionEvent
from app.models.lottery import LotterySettings, LotteryTicket, LotteryDraw
from app.models.inventory import Ingredient, ProductIngredient
from app.models.pizza import PizzaCategorySettings, PizzaSize
from app.models.payment import CompanyPaymentSettings, PaymentTransaction
from app.models.subscription import SubscriptionPlan, SubscriptionPayment
from app.models.platform import SystemSetting, ReleaseNote, PortalPost, Notification

__all__ = [
    "Company",
    "CompanyStatus",
    "Role",
    "Permission",
    "RolePermission",
    "User",
    "Category",
    "Product",
    "ProductOption",
    "Customer",
    "DeliveryDriver",
    "Table",
    "TableSession",
    "Order",
    "OrderItem",
    "Promotion",
    "PromotionSize",
    "Coupon",
    "PromotionEvent",
    "LotterySettings",
    "LotteryTicket",
    "LotteryDraw",
    "Ingredient",
    "ProductIngredient",
    "PizzaCategorySettings",
    "PizzaSize",
    "CompanyPaymentSettings",
    "PaymentTransaction",
    "SubscriptionPlan",
    "SubscriptionPayment",
    "SystemSetting",
    "ReleaseNote",
    "PortalPost",
    "Notification",
]
