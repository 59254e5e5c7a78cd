import logging

from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from typing import Optional, List

from prometheus_fastapi_instrumentator import Instrumentator

from app.auth import Principal, get_principal
from app.catalog import FoodCatalog
from app.config import CORS_ORIGINS, LOG_LEVEL, POPULAR_FOODS_LIMIT
from app.dashboard import dashboard_stats
from app.database import get_db_session, engine
from app.errors import ServiceError, StoreFailure
from app.models import Base
from app.orders import OrderLedger
from app.reviews import ReviewAggregator
from app.schemas import (
    DashboardOut,
    FoodCreate,
    FoodOut,
    FoodUpdate,
    MessageOut,
    OrderCreate,
    OrderOut,
    OrderStatusUpdate,
    ReviewCreate,
    ReviewOut,
    ReviewUpdate,
)
from app.store import RecordStore

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Food Ordering Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Instrumentator().instrument(app).expose(app)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, StoreFailure):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # malformed bodies are input errors like missing fields
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def get_store():
    with get_db_session() as db:
        yield RecordStore(db)


def get_catalog(store: RecordStore = Depends(get_store)) -> FoodCatalog:
    return FoodCatalog(store)


def get_ledger(store: RecordStore = Depends(get_store)) -> OrderLedger:
    return OrderLedger(store)


def get_aggregator(
    store: RecordStore = Depends(get_store),
    catalog: FoodCatalog = Depends(get_catalog),
) -> ReviewAggregator:
    return ReviewAggregator(store, catalog)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)


# Orders

@app.get("/orders", response_model=List[OrderOut])
def list_all_orders(
    principal: Optional[Principal] = Depends(get_principal),
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.list_all_orders(principal)


@app.get("/orders/user/my-orders", response_model=List[OrderOut])
def list_my_orders(
    principal: Optional[Principal] = Depends(get_principal),
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.list_orders_for_user(principal)


@app.get("/orders/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    principal: Optional[Principal] = Depends(get_principal),
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.get_order(order_id, principal)


@app.post("/orders", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    principal: Optional[Principal] = Depends(get_principal),
    ledger: OrderLedger = Depends(get_ledger),
):
    body = payload.model_dump()
    return ledger.create_order(
        principal,
        items=body["items"],
        total_amount=body["total_amount"],
        address=body["address"],
        phone=body["phone"],
        payment_method=body["payment_method"],
    )


@app.put("/orders/{order_id}", response_model=OrderOut)
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    principal: Optional[Principal] = Depends(get_principal),
    ledger: OrderLedger = Depends(get_ledger),
):
    return ledger.set_order_status(order_id, payload.status, principal)


# Reviews

@app.get("/reviews", response_model=List[ReviewOut])
def list_all_reviews(
    principal: Optional[Principal] = Depends(get_principal),
    reviews: ReviewAggregator = Depends(get_aggregator),
):
    return reviews.list_all_reviews(principal)


@app.get("/reviews/food/{food_id}", response_model=List[ReviewOut])
def list_food_reviews(food_id: str, reviews: ReviewAggregator = Depends(get_aggregator)):
    return reviews.list_reviews_for_food(food_id)


@app.get("/reviews/user", response_model=List[ReviewOut])
def list_my_reviews(
    principal: Optional[Principal] = Depends(get_principal),
    reviews: ReviewAggregator = Depends(get_aggregator),
):
    return reviews.list_reviews_for_user(principal)


@app.post("/reviews", response_model=ReviewOut, status_code=201)
def create_review(
    payload: ReviewCreate,
    principal: Optional[Principal] = Depends(get_principal),
    reviews: ReviewAggregator = Depends(get_aggregator),
):
    return reviews.create_review(principal, payload.food_id, payload.rating, payload.comment)


@app.put("/reviews/{review_id}", response_model=ReviewOut)
def update_review(
    review_id: str,
    payload: ReviewUpdate,
    principal: Optional[Principal] = Depends(get_principal),
    reviews: ReviewAggregator = Depends(get_aggregator),
):
    return reviews.edit_review(
        review_id,
        principal,
        rating=payload.rating,
        comment=payload.comment,
        admin_reply=payload.admin_reply,
    )


@app.delete("/reviews/{review_id}", response_model=MessageOut)
def delete_review(
    review_id: str,
    principal: Optional[Principal] = Depends(get_principal),
    reviews: ReviewAggregator = Depends(get_aggregator),
):
    reviews.delete_review(review_id, principal)
    return MessageOut(message="Review deleted")


# Foods

@app.get("/foods", response_model=List[FoodOut])
def list_foods(catalog: FoodCatalog = Depends(get_catalog)):
    return catalog.list_foods()


@app.get("/foods/popular", response_model=List[FoodOut])
def list_popular_foods(limit: int = POPULAR_FOODS_LIMIT, catalog: FoodCatalog = Depends(get_catalog)):
    return catalog.popular_foods(limit)


@app.get("/foods/{food_id}", response_model=FoodOut)
def get_food(food_id: str, catalog: FoodCatalog = Depends(get_catalog)):
    return catalog.get_food(food_id)


@app.post("/foods", response_model=FoodOut, status_code=201)
def create_food(
    payload: FoodCreate,
    principal: Optional[Principal] = Depends(get_principal),
    catalog: FoodCatalog = Depends(get_catalog),
):
    return catalog.create_food(principal, **payload.model_dump())


@app.put("/foods/{food_id}", response_model=FoodOut)
def update_food(
    food_id: str,
    payload: FoodUpdate,
    principal: Optional[Principal] = Depends(get_principal),
    catalog: FoodCatalog = Depends(get_catalog),
):
    return catalog.update_food(principal, food_id, payload.model_dump(exclude_none=True))


@app.delete("/foods/{food_id}", response_model=MessageOut)
def delete_food(
    food_id: str,
    principal: Optional[Principal] = Depends(get_principal),
    catalog: FoodCatalog = Depends(get_catalog),
):
    catalog.delete_food(principal, food_id)
    return MessageOut(message="Food deleted")


# Admin

@app.get("/admin/dashboard", response_model=DashboardOut)
def admin_dashboard(
    principal: Optional[Principal] = Depends(get_principal),
    ledger: OrderLedger = Depends(get_ledger),
    catalog: FoodCatalog = Depends(get_catalog),
):
    return dashboard_stats(principal, ledger, catalog)


@app.post("/admin/ratings/reconcile", response_model=List[FoodOut])
def reconcile_ratings(
    principal: Optional[Principal] = Depends(get_principal),
    reviews: ReviewAggregator = Depends(get_aggregator),
):
    return reviews.reconcile_ratings(principal)


@app.get("/health", tags=["health"])
def health(store: RecordStore = Depends(get_store)):
    try:
        store.ping()
    except StoreFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Database unavailable: {e.detail}",
        )
    return {"status": "ok", "db": "ok"}
