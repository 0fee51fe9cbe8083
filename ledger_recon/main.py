"""
FastAPI application for the ledger cash flow and bank reconciliation reports.
"""

import logging
import re
import sys
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .engine import LedgerReportService
from .exceptions import BalanceNotFound, InvalidInput, LedgerEngineError
from .store import LocalLedgerStore

logger = structlog.get_logger()
settings = get_settings()

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
NUMERIC_PATTERN = re.compile(r"^\d+$")


def setup_logging():
    """Configure logging to console and, optionally, a file."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.app_log_level.upper(), logging.INFO),
        format="%(message)s",
        handlers=handlers,
    )

    # Configure structlog to use standard logging
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Ledger Reports API", ledger_file=str(settings.ledger_file))
    yield
    logger.info("Shutting down Ledger Reports API")


app = FastAPI(
    title="Ledger Reports",
    description="Cash flow statements and bank reconciliations from ledger entries",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_report_service() -> LedgerReportService:
    """Build the report service over the configured ledger file."""
    return LedgerReportService(LocalLedgerStore(settings.ledger_file))


def _bad_request(error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": error, **extra})


def _parse_company_id(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


# Error handlers
@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    logger.warning("Invalid ledger data", path=request.url.path, entry_id=exc.entry_id, field=exc.field)
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid ledger data",
            "message": exc.message,
            "entryId": exc.entry_id,
            "field": exc.field,
        },
    )


@app.exception_handler(BalanceNotFound)
async def balance_not_found_handler(request: Request, exc: BalanceNotFound):
    logger.warning("Bank statement balance not found", path=request.url.path, details=exc.details)
    return JSONResponse(
        status_code=404,
        content={"error": "Bank statement balance not found", "message": exc.message},
    )


@app.exception_handler(LedgerEngineError)
async def engine_error_handler(request: Request, exc: LedgerEngineError):
    logger.error("Report generation failed", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "Failed to generate report" if settings.is_production else exc.message,
        },
    )


# API Endpoints
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


@app.get("/api/cashflow")
async def get_cash_flow_statement(
    companyid: Optional[str] = None,
    fromDate: Optional[str] = None,
    toDate: Optional[str] = None,
):
    """Cash flow statement classified by operating, investing and financing activities."""
    if not companyid or not fromDate or not toDate:
        return _bad_request(
            "Missing required parameters",
            required=["companyid", "fromDate", "toDate"],
        )

    if not DATE_PATTERN.match(fromDate) or not DATE_PATTERN.match(toDate):
        return _bad_request("Invalid date format", message="Dates must be in YYYY-MM-DD format")

    try:
        from_date = date.fromisoformat(fromDate)
        to_date = date.fromisoformat(toDate)
    except ValueError:
        return _bad_request("Invalid date format", message="Dates must be in YYYY-MM-DD format")

    company_id = _parse_company_id(companyid)
    if company_id is None:
        return _bad_request("Invalid company ID", message="Company ID must be a valid number")

    statement = await get_report_service().cash_flow_statement(company_id, from_date, to_date)
    return statement.to_dict()


@app.get("/api/bank-reconciliation")
async def get_bank_reconciliation(
    companyid: Optional[str] = None,
    bankaccount: Optional[str] = None,
):
    """Bank reconciliation statement for a company bank account."""
    if not companyid:
        return _bad_request("Missing required parameters", required=["companyid", "bankaccount"])

    company_id = _parse_company_id(companyid)
    if company_id is None:
        return _bad_request("Invalid company ID", message="Company ID must be a valid number")

    if bankaccount and NUMERIC_PATTERN.match(bankaccount):
        return _bad_request(
            "Invalid bank account",
            message="Bank account must be a valid bank account name",
        )

    statement = await get_report_service().bank_reconciliation(company_id, bankaccount or None)
    return statement.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
