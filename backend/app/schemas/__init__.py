from app.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
)
from app.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
)
from app.schemas.order import (
    CheckoutRequest, CheckoutResponse, OrderResponse, OrderTrackingResponse,
)
from app.schemas.inventory import (
    IngredientCreate, IngredientUpdate, IngredientResponse, IngredientAdjustRequest,
)

__all__ = [
    "ProductCreate", "ProductUpdate", "ProductResponse", "ProductListResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "CheckoutRequest", "CheckoutResponse", "OrderResponse", "OrderTrackingResponse",
    "IngredientCreate", "IngredientUpdate", "IngredientResponse", "IngredientAdjustRequest",
]
