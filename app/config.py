import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/food_order.db")

JWT_SECRET = os.getenv("JWT_SECRET", "dev_secret_change_me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")
TOKEN_EXPIRE_MIN = int(os.getenv("TOKEN_EXPIRE_MIN", str(60 * 24 * 30)))  # 30 days

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

POPULAR_FOODS_LIMIT = int(os.getenv("POPULAR_FOODS_LIMIT", "4"))
