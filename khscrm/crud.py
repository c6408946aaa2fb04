from __future__ import annotations
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models, schemas, security
from .ids import new_id, utc_now_iso

logger = logging.getLogger(__name__)

# ---------- Users ----------

def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email).first()

def create_user(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: str = models.ROLE_WORKER,
    prefix: str = "user",
) -> models.User:
    hashed_pw = security.hash_password(password)
    user = models.User(id=new_id(prefix), email=email, hashed_password=hashed_pw, name=name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def list_workers(db: Session) -> list[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.role == models.ROLE_WORKER)
        .order_by(models.User.name.asc())
        .all()
    )

def ensure_seed_admin(db: Session, email: str, password: str) -> bool:
    """Create the owner recovery account if no user has its email. Returns True if created."""
    if get_user_by_email(db, email):
        return False
    create_user(db, email, password, "Administrator", role=models.ROLE_OWNER, prefix="admin")
    return True

DEMO_CUSTOMERS = [
    {
        "id": "demo-customer-1",
        "name": "John Smith",
        "phone": "(555) 123-4567",
        "email": "john.smith@email.com",
        "address": "123 Main Street, Anytown, ST 12345",
        "notes": "Regular customer, prefers morning appointments",
        "reference": "HOD",
        "customer_type": "CURRENT",
    },
    {
        "id": "demo-customer-2",
        "name": "ABC Construction LLC",
        "phone": "(555) 987-6543",
        "email": "contact@abcconstruction.com",
        "address": "456 Business Park Drive, Anytown, ST 12345",
        "notes": "Commercial client, large projects",
        "reference": "Cust",
        "customer_type": "CURRENT",
    },
    {
        "id": "demo-customer-3",
        "name": "Sarah Johnson",
        "phone": "(555) 456-7890",
        "email": "sarah.j@example.com",
        "address": "789 Oak Avenue, Anytown, ST 12345",
        "notes": "Interested in kitchen remodel - follow up needed",
        "reference": "Yelp",
        "customer_type": "LEADS",
    },
]

def seed_demo_customers(db: Session) -> int:
    added = 0
    for row in DEMO_CUSTOMERS:
        if db.get(models.Customer, row["id"]) is None:
            db.add(models.Customer(**row))
            added += 1
    db.commit()
    return added

# ---------- Customers ----------

def _customers_with_job_count(db: Session):
    return (
        db.query(models.Customer, func.count(models.Job.id).label("job_count"))
        .outerjoin(models.Job, models.Job.customer_id == models.Customer.id)
        .group_by(models.Customer.id)
    )

def list_customers(db: Session, customer_type: str | None = None) -> list[tuple[models.Customer, int]]:
    """All customers with their job counts, by name. Unknown types mean no filter."""
    q = _customers_with_job_count(db)
    if customer_type in models.CUSTOMER_TYPES:
        q = q.filter(models.Customer.customer_type == customer_type)
    return [(c, n) for c, n in q.order_by(models.Customer.name.asc()).all()]

def get_customer(db: Session, customer_id: str) -> models.Customer | None:
    return db.get(models.Customer, customer_id)

def get_customer_with_job_count(db: Session, customer_id: str) -> tuple[models.Customer, int] | None:
    row = _customers_with_job_count(db).filter(models.Customer.id == customer_id).first()
    return (row[0], row[1]) if row else None

def _apply_customer_fields(row: models.Customer, data: schemas.CustomerIn) -> None:
    row.name = data.name
    row.phone = data.phone
    row.email = data.email
    row.address = data.address
    row.notes = data.notes
    row.reference = data.reference
    row.customer_type = data.customer_type or "CURRENT"

def create_customer(db: Session, data: schemas.CustomerIn) -> models.Customer:
    now = utc_now_iso()
    row = models.Customer(id=new_id("cust"), created_at=now, updated_at=now)
    _apply_customer_fields(row, data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

def update_customer(db: Session, customer_id: str, data: schemas.CustomerIn) -> models.Customer | None:
    row = get_customer(db, customer_id)
    if row is None:
        return None
    _apply_customer_fields(row, data)
    row.updated_at = utc_now_iso()
    db.commit()
    db.refresh(row)
    return row

def delete_customer(db: Session, customer_id: str) -> bool:
    """Delete a customer along with its jobs and their materials."""
    row = get_customer(db, customer_id)
    if row is None:
        return False
    job_count = len(row.jobs)
    db.delete(row)
    db.commit()
    logger.info("Deleted customer %s and %d job(s)", customer_id, job_count)
    return True

# ---------- Jobs ----------

def list_jobs(db: Session) -> list[tuple[models.Job, str]]:
    q = (
        db.query(models.Job, models.Customer.name)
        .join(models.Customer, models.Job.customer_id == models.Customer.id)
        .order_by(models.Job.created_at.desc())
    )
    return [(job, name) for job, name in q.all()]

def get_job(db: Session, job_id: str) -> models.Job | None:
    return db.get(models.Job, job_id)

def _apply_job_fields(row: models.Job, data: schemas.JobIn) -> None:
    row.customer_id = data.customer_id
    row.title = data.title
    row.description = data.description
    row.status = data.status or "QUOTED"
    row.priority = data.priority or "medium"
    row.total_cost = data.total_cost or 0
    row.start_date = data.start_date
    row.end_date = data.end_date
    row.notes = data.notes

def create_job(db: Session, data: schemas.JobIn) -> models.Job:
    now = utc_now_iso()
    row = models.Job(id=new_id("job"), created_at=now, updated_at=now)
    _apply_job_fields(row, data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

def update_job(db: Session, job_id: str, data: schemas.JobIn) -> models.Job | None:
    row = get_job(db, job_id)
    if row is None:
        return None
    _apply_job_fields(row, data)
    row.updated_at = utc_now_iso()
    db.commit()
    db.refresh(row)
    return row

def delete_job(db: Session, job_id: str) -> bool:
    row = get_job(db, job_id)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    return True

# ---------- Materials ----------

def list_materials(db: Session, job_id: str) -> list[models.Material]:
    return (
        db.query(models.Material)
        .filter(models.Material.job_id == job_id)
        .order_by(models.Material.created_at.asc())
        .all()
    )

def get_material(db: Session, material_id: str) -> models.Material | None:
    return db.get(models.Material, material_id)

def _apply_material_fields(row: models.Material, data: schemas.MaterialIn) -> None:
    row.item_name = data.item_name
    row.quantity = data.quantity
    row.unit = data.unit or "each"
    row.purchased = bool(data.purchased)
    row.notes = data.notes

def create_material(db: Session, job_id: str, data: schemas.MaterialIn) -> models.Material:
    row = models.Material(id=new_id("mat"), job_id=job_id, created_at=utc_now_iso())
    _apply_material_fields(row, data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

def update_material(db: Session, material_id: str, data: schemas.MaterialIn) -> models.Material | None:
    row = get_material(db, material_id)
    if row is None:
        return None
    _apply_material_fields(row, data)
    db.commit()
    db.refresh(row)
    return row

def delete_material(db: Session, material_id: str) -> bool:
    row = get_material(db, material_id)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    return True

# ---------- Import leads ----------

def list_import_leads(db: Session, status: str | None = "pending") -> list[models.ImportLead]:
    q = db.query(models.ImportLead)
    if status and status != "all":
        q = q.filter(models.ImportLead.status == status)
    return q.order_by(models.ImportLead.imported_at.desc()).all()

def get_import_lead(db: Session, lead_id: str) -> models.ImportLead | None:
    return db.get(models.ImportLead, lead_id)

def create_import_lead(db: Session, data: schemas.ImportLeadIn) -> models.ImportLead:
    row = models.ImportLead(
        id=new_id("lead"),
        status="pending",
        imported_at=utc_now_iso(),
        **data.model_dump(exclude={"state", "attachments"}),
        state=data.state or "HI",
        attachments=data.attachments or [],
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

def update_pending_lead(db: Session, lead_id: str, data: schemas.ImportLeadUpdate) -> bool:
    row = get_import_lead(db, lead_id)
    if row is None or row.status != "pending":
        return False
    for field, value in data.model_dump(exclude={"state"}).items():
        setattr(row, field, value)
    row.state = data.state or "HI"
    db.commit()
    return True

def _compose_address(lead: models.ImportLead) -> str | None:
    region = " ".join(p for p in (lead.state, lead.zip_code) if p)
    parts = [p for p in (lead.street_address, lead.city, region) if p]
    return ", ".join(parts) or None

def _like_literal(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def _find_customer_for_lead(db: Session, lead: models.ImportLead) -> models.Customer | None:
    if lead.email:
        found = db.execute(
            select(models.Customer).where(models.Customer.email == lead.email).limit(1)
        ).scalar_one_or_none()
        if found:
            return found
    name_parts = (lead.name or "").split()
    if name_parts and lead.street_address:
        last_name = _like_literal(name_parts[-1])
        street = _like_literal(lead.street_address)
        return db.execute(
            select(models.Customer)
            .where(
                models.Customer.name.ilike(f"%{last_name}%", escape="\\"),
                models.Customer.address.ilike(f"{street}%", escape="\\"),
            )
            .limit(1)
        ).scalar_one_or_none()
    return None

def approve_import_lead(db: Session, lead: models.ImportLead, user_id: str) -> tuple[str, str]:
    """
    Turn a pending lead into a job, reusing a matching customer or creating one.

    Returns (customer_id, job_id). Everything is committed together.
    """
    now = utc_now_iso()
    customer = _find_customer_for_lead(db, lead)
    if customer is None:
        customer = models.Customer(
            id=new_id("cust"),
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            address=_compose_address(lead),
            reference="Supplier Import",
            customer_type="CURRENT",
            notes=f"Imported from: {lead.subject_line or 'Supplier email'}",
            created_at=now,
            updated_at=now,
        )
        db.add(customer)
        logger.info("Creating customer %s from import lead %s", customer.id, lead.id)

    job = models.Job(
        id=new_id("job"),
        customer_id=customer.id,
        title=lead.job_type or "Kitchen",
        description=lead.email_body or f"Imported from supplier email: {lead.subject_line}",
        notes=lead.notes or "",
        status="QUOTED",
        priority="medium",
        total_cost=0,
        created_at=now,
        updated_at=now,
    )
    db.add(job)
    # FKs on import_leads have no ORM relationship; insert parents first
    db.flush()

    lead.status = "approved"
    lead.processed_at = now
    lead.processed_by = user_id
    lead.customer_id = customer.id
    lead.job_id = job.id
    db.commit()
    return customer.id, job.id

def reject_import_lead(db: Session, lead_id: str, user_id: str, reason: str | None) -> bool:
    row = get_import_lead(db, lead_id)
    if row is None or row.status != "pending":
        return False
    line = f"Rejection reason: {reason or 'No reason provided'}"
    row.notes = f"{row.notes}\n{line}" if row.notes else line
    row.status = "rejected"
    row.processed_at = utc_now_iso()
    row.processed_by = user_id
    db.commit()
    return True

def delete_import_lead(db: Session, lead_id: str) -> bool:
    row = get_import_lead(db, lead_id)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    return True

def import_lead_stats(db: Session) -> dict[str, int]:
    counts = dict(
        db.query(models.ImportLead.status, func.count(models.ImportLead.id))
        .group_by(models.ImportLead.status)
        .all()
    )
    stats = {status: counts.get(status, 0) for status in models.LEAD_STATUSES}
    stats["total"] = sum(counts.values())
    return stats
