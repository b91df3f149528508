import sys
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tryout_app.infrastructure.config import LOG_LEVEL
from tryout_app.infrastructure.db.session import Base, engine
from tryout_app.infrastructure.db import models  # noqa: F401  (registers tables)
from tryout_app.presentation.api.routers.tryout_router import router as tryout_router
from tryout_app.presentation.api.routers.question_router import router as question_router

# Create tables
Base.metadata.create_all(bind=engine)

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="Tryout Platform API")

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "An internal server error occurred."}
    )

# Include routers
app.include_router(tryout_router)
app.include_router(question_router)


# Optional root endpoint
@app.get("/")
def root():
    return {"message": "Welcome to Tryout Platform API"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
