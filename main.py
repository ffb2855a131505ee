"""
SiteCheck Backend - Main Application
Photo-verified, geofenced check-in/out for field staff with admin dashboard
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import uvicorn
from datetime import datetime, timezone

# Import database and routes
from config import settings
from database import init_db, supabase, test_connection
from routes import admin, attendance, auth, chat, reports, workspace
from utils.exceptions import AttendanceError
from utils.messages import TRANSLATIONS, localize

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 SiteCheck Backend Starting...")

    logger.info("📊 Initializing schema...")
    if not init_db():
        logger.info("ℹ️ DATABASE_URL not set, schema is managed by the hosted backend")

    logger.info("🔍 Testing storage connection...")
    if test_connection():
        logger.info("✅ Storage connection successful")
        from services.container import _build_container
        await _build_container().log_book.reload(settings.RECENT_LOGS_LIMIT)
    else:
        logger.error("❌ Storage connection failed")

    logger.info("✅ Backend startup completed successfully")

    yield

    # Shutdown
    logger.info("🛑 SiteCheck Backend Shutting Down...")

# Create FastAPI app
app = FastAPI(
    title="SiteCheck API",
    description="Photo-verified, geofenced attendance for field staff",
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def _request_language(request: Request) -> str:
    """First supported language from Accept-Language, else the default."""
    header = request.headers.get("accept-language", "")
    for part in header.split(","):
        lang = part.split(";")[0].strip().lower()[:2]
        if lang in TRANSLATIONS:
            return lang
    return settings.DEFAULT_LANGUAGE

@app.exception_handler(AttendanceError)
async def attendance_error_handler(request: Request, exc: AttendanceError):
    logger.warning(f"⚠️ {exc.code} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.code,
            "detail": localize(exc, _request_language(request))
        }
    )

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Global exception: {str(exc)}")
    logger.error(f"📍 Request: {request.method} {request.url}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "error",
            "detail": "Internal server error",
            "error_type": type(exc).__name__,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )

# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    db_status = supabase is not None and test_connection()
    return {
        "status": "healthy" if db_status else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if db_status else "disconnected",
        "version": settings.API_VERSION
    }

# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "SiteCheck API",
        "version": settings.API_VERSION,
        "status": "running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
        "health": "/health"
    }

# Include all route modules
app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Authentication"])
app.include_router(attendance.router, prefix=f"{settings.API_PREFIX}/attendance", tags=["Attendance"])
app.include_router(reports.router, prefix=f"{settings.API_PREFIX}/reports", tags=["Reports"])
app.include_router(chat.router, prefix=f"{settings.API_PREFIX}/chat", tags=["Chat"])
app.include_router(workspace.router, prefix=f"{settings.API_PREFIX}/workspace", tags=["Workspace"])
app.include_router(admin.router, prefix=f"{settings.API_PREFIX}/admin", tags=["Admin"])

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8080,
        reload=False,
        log_level="info"
    )
