# Fourtify CRM backend entrypoint.

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crm_portal.app.api import auth
from crm_portal.app.api import champions
from crm_portal.app.api import clients
from crm_portal.app.api import contacts
from crm_portal.app.api import email
from crm_portal.app.api import invoices
from crm_portal.app.api import leads
from crm_portal.app.api import organisations
from crm_portal.app.api import payments
from crm_portal.app.api import pipeline
from crm_portal.app.api import profile
from crm_portal.app.api import stats
from crm_portal.app.core.logging_config import configure_logging
from crm_portal.app.core.settings import get_settings
from crm_portal.app.db.base import Base
from crm_portal.app.db.session import engine
from crm_portal.app.services.errors import NoPaidInvoicesError, UnknownStageError

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(organisations.router)
app.include_router(contacts.router)
app.include_router(leads.router)
app.include_router(pipeline.router)
app.include_router(stats.router)
app.include_router(clients.router)
app.include_router(invoices.router)
app.include_router(payments.router)
app.include_router(champions.router)
app.include_router(email.router)


@app.exception_handler(UnknownStageError)
async def unknown_stage_handler(request: Request, exc: UnknownStageError):
    logger.warning("Rejected unknown stage %r on %s", exc.stage, request.url.path)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NoPaidInvoicesError)
async def no_paid_invoices_handler(request: Request, exc: NoPaidInvoicesError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/")
def read_root():
    return {"app": "Fourtify CRM backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)
    logger.info("%s started (%s)", settings.app_name, settings.environment)
