from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import Base, engine
from datetime import datetime
from config import CORS_ALLOWED_ORIGINS, LOG_DIR, LOG_LEVEL
from exceptions import PoultryDomainError
import routers.batch as batch
import routers.feed as feed
import routers.daily_monitoring as daily_monitoring
import routers.sale as sale
import routers.medicine as medicine
import routers.performance_report as performance_report
import routers.overview as overview
import models  # noqa: F401  registers every table on Base.metadata
import os
import logging


os.makedirs(LOG_DIR, exist_ok=True) # Create 'logs' directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI(
    title="Broiler Batch Closing API",
    version="1.0.0",
    description="Feed, daily monitoring, sales and medicine ledgers with the batch closing report",
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS.split(',') if origin.strip()]

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PoultryDomainError)
async def domain_error_handler(request: Request, exc: PoultryDomainError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, exc.kind, exc.detail)
    else:
        logger.info("%s %s rejected: %s: %s", request.method, request.url.path, exc.kind, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(batch.router)
app.include_router(feed.router)
app.include_router(daily_monitoring.router)
app.include_router(sale.router)
app.include_router(medicine.router)
app.include_router(performance_report.router)
app.include_router(overview.router)

@app.get("/")
async def test_route():
    return {"message": "Welcome to the Broiler Batch Closing API!"}
