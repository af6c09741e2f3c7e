"""
Script to start the auto-recognition service
"""

if __name__ == "__main__":
    import uvicorn
    from autorecognition.config import get_settings
    from autorecognition.core.logging import setup_logging

    settings = get_settings()

    # Configure logging
    setup_logging(log_level=settings.LOG_LEVEL, is_debug=settings.DEBUG)

    print(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    print(f"📡 Server: http://{settings.HOST}:{settings.PORT}")
    print(f"📚 Docs: http://{settings.HOST}:{settings.PORT}/docs")
    print(f"🔍 OCR engine: {settings.OCR_ENGINE.value}")
    print(f"🔧 Debug mode: {settings.DEBUG}")
    print()

    # Start the server
    uvicorn.run(
        "autorecognition.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
