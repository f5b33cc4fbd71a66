import logging

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticket_enhancements import __version__
from ticket_enhancements.config.settings import get_settings
from ticket_enhancements.engine import ResolutionEngine
from ticket_enhancements.errors import InvalidContextError, RuleIntegrityError
from ticket_enhancements.api.enhancements_api import router as enhancements_router
from ticket_enhancements.api.currency_api import router as currency_router
from ticket_enhancements.api.state import get_engine

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Ticket Enhancements API",
    description="Effective markup and hospitality resolution for upstream event tickets",
    version=__version__,
)

# Enable CORS for the storefront and admin frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(enhancements_router)
app.include_router(currency_router)


@app.exception_handler(InvalidContextError)
async def invalid_context_handler(request: Request, exc: InvalidContextError):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(RuleIntegrityError)
async def rule_integrity_handler(request: Request, exc: RuleIntegrityError):
    logger.error("Rule integrity violation on %s: %s %s", request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=500, content=exc.to_dict())


@app.get("/")
async def root():
    return {"status": "online", "message": "Ticket Enhancements API Active"}


@app.get("/system/status")
async def get_status(engine: ResolutionEngine = Depends(get_engine)):
    return {
        "engine_active": True,
        "data_dir": str(engine.store.data_dir) if engine.store.data_dir else None,
        "tables": engine.store.stats(),
    }


@app.post("/system/reload")
async def reload_rules(engine: ResolutionEngine = Depends(get_engine)):
    """Re-read the rule tables from disk."""
    engine.reload_data()
    return {"success": True, "tables": engine.store.stats()}
