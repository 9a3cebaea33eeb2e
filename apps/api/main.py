from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import os
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment variables from .env file FIRST
load_dotenv()

from database import create_db_and_tables, open_session
import models  # Import models to register them with SQLModel
from routers import auth, medicines, stock, sales, suppliers, alerts, analytics, settings, users, activity_logs
from middleware.activity_logger import ActivityLoggingMiddleware
from middleware.security_headers import SecurityHeadersMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("MedStock API started")
    yield


app = FastAPI(
    title="MedStock API",
    description="Pharmacy inventory management: medicines, stock movements, suppliers and analytics",
    version="0.1.0",
    lifespan=lifespan
)

# Set up rate limiter
app.state.limiter = auth.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

origins = [
    "http://localhost:3000",  # Development frontend
    "http://localhost:5173",  # Vite dev server
    os.getenv("FRONTEND_URL", "http://localhost:3000"),
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "Accept", "Origin"],
)

app.add_middleware(ActivityLoggingMiddleware, db_session_factory=open_session)

# Added last so it wraps every response
app.add_middleware(SecurityHeadersMiddleware)

app.include_router(auth.router)
app.include_router(medicines.router)
app.include_router(stock.router)
app.include_router(sales.router)
app.include_router(suppliers.router)
app.include_router(alerts.router)
app.include_router(analytics.router)
app.include_router(settings.router)
app.include_router(users.router)
app.include_router(activity_logs.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to MedStock API"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
