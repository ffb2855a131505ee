#!/usr/bin/env python3
"""
SiteCheck Backend Startup Script
Handles graceful startup with error diagnostics
"""

import os
import sys
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def check_environment():
    """Check if all required environment variables are set"""
    required_vars = ["SECRET_KEY"]
    recommended_vars = ["SUPABASE_URL", "SUPABASE_KEY"]

    missing_vars = [var for var in required_vars if not os.getenv(var)]
    if missing_vars:
        logger.error(f"❌ Missing environment variables: {missing_vars}")
        return False

    missing_recommended = [var for var in recommended_vars if not os.getenv(var)]
    if missing_recommended:
        logger.warning(f"⚠️ Storage not configured, API will answer 503: {missing_recommended}")

    if not os.getenv("TWILIO_ACCOUNT_SID"):
        logger.info("ℹ️ Twilio not configured, out-of-bounds SMS alerts disabled")

    logger.info("✅ Environment check completed")
    return True

def check_database_connection():
    """Test storage connectivity before starting the server"""
    from database import supabase, test_connection

    if supabase is None:
        logger.warning("⚠️ Supabase client not initialized")
        return False

    logger.info("🔍 Testing database connection...")
    if test_connection():
        return True

    logger.info("⚠️ Continuing anyway - will try to connect during runtime")
    return False

def start_server():
    """Start the FastAPI server"""
    import uvicorn
    from main import app

    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"🚀 Starting SiteCheck Backend on {host}:{port}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info"
    )

def main():
    """Main startup function"""
    logger.info("📍 SiteCheck Backend - Starting Up...")

    # Check environment
    if not check_environment():
        logger.error("❌ Environment check failed")
        sys.exit(1)

    # Check database
    check_database_connection()

    # Start server
    start_server()

if __name__ == "__main__":
    main()
