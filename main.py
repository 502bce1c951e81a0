# main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.logging_config import configure_logging
from config.settings import get_settings
from middleware.request_logging import RequestLoggingMiddleware
from routers.ai_routes import router as ai_router
from routers.market_routes import router as market_router
from routers.portfolio_routes import router as portfolio_router

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="Stock Portfolio Tracker")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request: " + "; ".join(problems)},
    )


@app.get("/api/ping")
async def ping():
    return {"message": "Server is working!"}


# Include routers
app.include_router(portfolio_router, prefix="/api/portfolio")
app.include_router(market_router, prefix="/api")
app.include_router(ai_router, prefix="/api/ai")

# db startup
from database import Base, engine
import models  # registers every table on Base.metadata

Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    import uvicorn

    logger.info("Server starting on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
