from pydantic import BaseModel, ConfigDict
from typing import Any, Optional, List

# Request bodies leave required fields optional: presence is checked by the
# ledger and aggregator so a missing field is a 400, not a 422. Ratings are
# taken raw so parse_rating sees booleans and floats as sent.


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    food_id: Optional[str] = None
    name: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[float] = None


class OrderCreate(BaseModel):
    items: Optional[List[OrderItem]] = None
    total_amount: Optional[float] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    payment_method: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: Optional[str] = None


class OrderOut(BaseModel):
    id: str
    user_id: str
    items: List[Any]
    total_amount: float
    address: str
    phone: str
    payment_method: str
    status: str
    created_at: str


class ReviewCreate(BaseModel):
    food_id: Optional[str] = None
    rating: Any = None
    comment: Optional[str] = None


class ReviewUpdate(BaseModel):
    rating: Any = None
    comment: Optional[str] = None
    admin_reply: Optional[str] = None


class ReviewOut(BaseModel):
    id: str
    user_id: str
    food_id: str
    rating: int
    comment: str
    user_name: str = ""
    admin_reply: Optional[str] = None
    created_at: str


class FoodCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    image: Optional[str] = None


class FoodUpdate(BaseModel):
    # extra keys such as "rating" are dropped by pydantic
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    image: Optional[str] = None
    popular: Optional[bool] = None


class FoodOut(BaseModel):
    id: str
    name: str
    description: str
    price: float
    category: str
    image: Optional[str] = None
    popular: bool = False
    rating: float = 0.0
    created_at: str


class DashboardOut(BaseModel):
    total_orders: int
    total_sales: float
    total_customers: int
    total_food_items: int
    recent_orders: List[OrderOut]
    popular_items: List[FoodOut]


class MessageOut(BaseModel):
    message: str
