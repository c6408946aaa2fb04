# khscrm/main.py
import logging
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import auth, crud, leads, models, schemas
from .auth import get_current_user
from .config import DEFAULT_ADMIN_PASSWORD, settings
from .database import SessionLocal, engine, get_db, init_db
from .ids import utc_now_iso
from .logging_config import setup_logging
from .sessions import InMemorySessionStore, UserContext

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)
app.state.session_store = InMemorySessionStore(ttl_seconds=settings.SESSION_TTL_MINUTES * 60)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials="*" not in settings.CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth.router)
app.include_router(leads.router)


# Every error leaves as {"error": message}
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = "Invalid request"
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first['msg']}" if field else first["msg"]
    return JSONResponse({"error": message}, status_code=status.HTTP_400_BAD_REQUEST)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": "Database error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def seed_database() -> None:
    """Create the owner account (and demo customers if enabled). Failures are logged, never raised."""
    db = SessionLocal()
    try:
        if crud.ensure_seed_admin(db, settings.SEED_ADMIN_EMAIL, settings.SEED_ADMIN_PASSWORD):
            logger.info("Created seed owner account %s", settings.SEED_ADMIN_EMAIL)
        if settings.SEED_ADMIN_PASSWORD == DEFAULT_ADMIN_PASSWORD:
            logger.warning("Seed owner account uses the default password; set SEED_ADMIN_PASSWORD")
        if settings.SEED_DEMO_DATA:
            added = crud.seed_demo_customers(db)
            logger.info("Seeded %d demo customer(s)", added)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Seeding the database failed; continuing startup")
    finally:
        db.close()

@app.on_event("startup")
def startup_event():
    setup_logging(settings)
    # Create tables if they don't exist
    init_db(engine)
    seed_database()
    logger.info("%s started", settings.APP_NAME)

@app.on_event("shutdown")
def shutdown_event():
    engine.dispose()
    logger.info("Database connection closed")


@app.get("/api/health", response_model=schemas.Health, tags=["monitoring"])
def health_check():
    return {"status": "ok", "timestamp": utc_now_iso(), "message": settings.APP_NAME}


# Customers
def _customer_out(customer: models.Customer, job_count: int = 0) -> schemas.CustomerOut:
    out = schemas.CustomerOut.model_validate(customer)
    out.job_count = job_count
    return out

def _require_customer_name(payload: schemas.CustomerIn) -> None:
    if not payload.name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

@app.get("/api/customers", response_model=list[schemas.CustomerOut], tags=["customers"])
def list_customers(
    type: str | None = Query(None, description="CURRENT or LEADS; anything else lists all"),
    db: Session = Depends(get_db),
    _: UserContext = Depends(get_current_user),
):
    return [_customer_out(c, n) for c, n in crud.list_customers(db, type)]

@app.post("/api/customers", response_model=schemas.CustomerOut, tags=["customers"])
def create_customer(
    payload: schemas.CustomerIn,
    db: Session = Depends(get_db),
    _: UserContext = Depends(get_current_user),
):
    _require_customer_name(payload)
    return _customer_out(crud.create_customer(db, payload))

@app.get("/api/customers/{customer_id}", response_model=schemas.CustomerOut, tags=["customers"])
def get_customer(customer_id: str, db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    row = crud.get_customer_with_job_count(db, customer_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return _customer_out(*row)

@app.put("/api/customers/{customer_id}", response_model=schemas.CustomerOut, tags=["customers"])
def update_customer(
    customer_id: str,
    payload: schemas.CustomerIn,
    db: Session = Depends(get_db),
    _: UserContext = Depends(get_current_user),
):
    _require_customer_name(payload)
    if crud.update_customer(db, customer_id, payload) is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return _customer_out(*crud.get_customer_with_job_count(db, customer_id))

@app.delete("/api/customers/{customer_id}", response_model=schemas.Message, tags=["customers"])
def delete_customer(customer_id: str, db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    if not crud.delete_customer(db, customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")
    return {"message": "Customer deleted"}


# Jobs
def _job_out(job: models.Job, customer_name: str | None) -> schemas.JobOut:
    out = schemas.JobOut.model_validate(job)
    out.customer_name = customer_name
    return out

def _validated_customer(db: Session, payload: schemas.JobIn) -> models.Customer:
    if not payload.customer_id or not payload.title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer ID and title are required")
    customer = crud.get_customer(db, payload.customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer not found")
    return customer

@app.get("/api/jobs", response_model=list[schemas.JobOut], tags=["jobs"])
def list_jobs(db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    return [_job_out(job, name) for job, name in crud.list_jobs(db)]

@app.post("/api/jobs", response_model=schemas.JobOut, tags=["jobs"])
def create_job(payload: schemas.JobIn, db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    customer = _validated_customer(db, payload)
    return _job_out(crud.create_job(db, payload), customer.name)

@app.get("/api/jobs/{job_id}", response_model=schemas.JobOut, tags=["jobs"])
def get_job(job_id: str, db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    job = crud.get_job(db, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return _job_out(job, job.customer.name)

@app.put("/api/jobs/{job_id}", response_model=schemas.JobOut, tags=["jobs"])
def update_job(
    job_id: str,
    payload: schemas.JobIn,
    db: Session = Depends(get_db),
    _: UserContext = Depends(get_current_user),
):
    if not payload.customer_id or not payload.title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer ID and title are required")
    if crud.get_job(db, job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")
    customer = _validated_customer(db, payload)
    return _job_out(crud.update_job(db, job_id, payload), customer.name)

@app.delete("/api/jobs/{job_id}", response_model=schemas.Message, tags=["jobs"])
def delete_job(job_id: str, db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    if not crud.delete_job(db, job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    logger.info("Deleted job %s", job_id)
    return {"message": "Job deleted"}


# Materials
def _require_material_fields(payload: schemas.MaterialIn) -> None:
    if not payload.item_name or payload.quantity is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item name and quantity are required")

@app.get("/api/jobs/{job_id}/materials", response_model=list[schemas.MaterialOut], tags=["materials"])
def list_materials(job_id: str, db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    if crud.get_job(db, job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return crud.list_materials(db, job_id)

@app.post("/api/jobs/{job_id}/materials", response_model=schemas.MaterialOut, tags=["materials"])
def create_material(
    job_id: str,
    payload: schemas.MaterialIn,
    db: Session = Depends(get_db),
    _: UserContext = Depends(get_current_user),
):
    _require_material_fields(payload)
    if crud.get_job(db, job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return crud.create_material(db, job_id, payload)

@app.put("/api/materials/{material_id}", response_model=schemas.MaterialOut, tags=["materials"])
def update_material(
    material_id: str,
    payload: schemas.MaterialIn,
    db: Session = Depends(get_db),
    _: UserContext = Depends(get_current_user),
):
    _require_material_fields(payload)
    row = crud.update_material(db, material_id, payload)
    if row is None:
        raise HTTPException(status_code=404, detail="Material not found")
    return row

@app.delete("/api/materials/{material_id}", response_model=schemas.Message, tags=["materials"])
def delete_material(material_id: str, db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    if not crud.delete_material(db, material_id):
        raise HTTPException(status_code=404, detail="Material not found")
    return {"message": "Material deleted"}


# Workers
@app.get("/api/workers", response_model=list[schemas.UserOut], tags=["workers"])
def list_workers(db: Session = Depends(get_db), _: UserContext = Depends(get_current_user)):
    return crud.list_workers(db)


# Unknown API paths must not fall through to the frontend
@app.api_route("/api/{rest:path}", methods=["GET", "POST", "PUT", "DELETE"], include_in_schema=False)
def api_not_found(rest: str):
    raise HTTPException(status_code=404, detail="Not found")

# Frontend Routes
@app.get("/{full_path:path}", include_in_schema=False)
def frontend(full_path: str):
    static_dir = Path(settings.STATIC_DIR).resolve()
    if full_path:
        candidate = (static_dir / full_path).resolve()
        if candidate.is_relative_to(static_dir) and candidate.is_file():
            return FileResponse(candidate)
    index = static_dir / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Frontend not found")
    return FileResponse(index)
