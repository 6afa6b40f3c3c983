import time
import uuid
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response

from dietcraft.core.logging_config import get_logger
from dietcraft.core.rules import MAX_LOGO_BYTES
from dietcraft.models import (
    BrandingSettings,
    Client,
    ClientProfile,
    ClientUpdate,
    DietPlan,
    DietPlanCreate,
    DietPlanUpdate,
    GeneratePlanRequest,
    GeneratePlanResponse,
    ParseRequest,
    ParseResponse,
    PlanSection,
    UsageSummary,
    UserProfile,
    UserProfileCreate,
    UserProfileUpdate,
)
from dietcraft.services.ai_service import PlanGenerationError, ai_service
from dietcraft.services.branding_service import branding_service
from dietcraft.services.client_service import client_service
from dietcraft.services.diet_plan_service import diet_plan_service
from dietcraft.services.logo_service import logo_service
from dietcraft.services.document_store import get_document_store
from dietcraft.services.plan_parser import count_entries, plan_parser
from dietcraft.services.plan_renderer import plan_renderer
from dietcraft.services.plan_service import plan_service
from dietcraft.services.profile_service import profile_service
from dietcraft.services.stores.base import DocumentNotFoundError
from dietcraft.services.usage_service import QuotaExceededError, usage_service

app = FastAPI(title="DietCraft Nutrition Plan API", version="0.1.0")
logger = get_logger(__name__)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = str(uuid.uuid4())
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000.0
    logger.info(
        f"{request.method} {request.url.path} {response.status_code} "
        f"{duration_ms:.1f}ms request_id={request_id}"
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(QuotaExceededError)
async def quota_exceeded_handler(request: Request, exc: QuotaExceededError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.decision.message,
            "allowed": False,
            "remaining": 0,
            "limit": exc.decision.limit
        }
    )


@app.exception_handler(PlanGenerationError)
async def plan_generation_error_handler(request: Request, exc: PlanGenerationError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error_code": exc.error_code, "message": exc.message}
    )


@app.exception_handler(DocumentNotFoundError)
async def document_not_found_handler(request: Request, exc: DocumentNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"error_code": "NOT_FOUND", "message": f"{exc.collection} record '{exc.doc_id}' was not found."}
    )


def current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=401,
            detail={"error_code": "AUTH_REQUIRED", "message": "User authentication required"}
        )
    return x_user_id.strip()


@app.get("/")
def read_root():
    return {"message": "Welcome to the DietCraft API. Visit /docs for documentation."}


@app.get("/api/health")
def health():
    return {"status": "ok", "store": get_document_store().name, "ai": ai_service.status()}


# --- Parsing & Rendering ---

@app.post("/api/parse", response_model=ParseResponse)
def parse_plan_text(request: ParseRequest):
    """
    Structure raw plan text into headings, meal tables, bullet lists and paragraphs.
    """
    sections = plan_parser.parse(request.content)
    return ParseResponse(sections=sections, entry_count=count_entries(sections))


@app.post("/api/render", response_class=HTMLResponse)
def render_plan_text(request: ParseRequest):
    return HTMLResponse(plan_renderer.render_sections(plan_parser.parse(request.content)))


# --- Generation & Usage ---

@app.get("/api/usage", response_model=UsageSummary)
def get_usage(user_id: str = Depends(current_user_id)):
    return usage_service.get_usage(user_id)


@app.post("/api/plans/generate", response_model=GeneratePlanResponse)
def generate_plan(request: GeneratePlanRequest, user_id: str = Depends(current_user_id)):
    """
    Generate a nutrition plan for a client, subject to the daily generation quota.
    """
    return plan_service.generate(user_id, request)


# --- Clients ---

@app.post("/api/clients", response_model=Client, status_code=201)
def create_client(profile: ClientProfile, user_id: str = Depends(current_user_id)):
    return client_service.create(user_id, profile)


@app.get("/api/clients", response_model=List[Client])
def list_clients(user_id: str = Depends(current_user_id)):
    return client_service.list_for_dietitian(user_id)


@app.get("/api/clients/{client_id}", response_model=Client)
def get_client(client_id: str, user_id: str = Depends(current_user_id)):
    return client_service.get(client_id, dietitian_id=user_id)


@app.put("/api/clients/{client_id}", response_model=Client)
def update_client(client_id: str, changes: ClientUpdate, user_id: str = Depends(current_user_id)):
    return client_service.update(client_id, changes, dietitian_id=user_id)


@app.delete("/api/clients/{client_id}", status_code=204)
def delete_client(client_id: str, user_id: str = Depends(current_user_id)):
    client_service.delete(client_id, dietitian_id=user_id)


@app.get("/api/clients/{client_id}/plans", response_model=List[DietPlan])
def list_client_plans(client_id: str, user_id: str = Depends(current_user_id)):
    client_service.get(client_id, dietitian_id=user_id)
    return diet_plan_service.list_for_client(client_id, dietitian_id=user_id)


# --- Diet Plans ---

@app.post("/api/plans", response_model=DietPlan, status_code=201)
def create_plan(data: DietPlanCreate, user_id: str = Depends(current_user_id)):
    client_service.get(data.client_id, dietitian_id=user_id)
    return diet_plan_service.create(user_id, data)


@app.get("/api/plans", response_model=List[DietPlan])
def list_plans(user_id: str = Depends(current_user_id)):
    return diet_plan_service.list_for_dietitian(user_id)


@app.get("/api/plans/{plan_id}", response_model=DietPlan)
def get_plan(plan_id: str, user_id: str = Depends(current_user_id)):
    return diet_plan_service.get(plan_id, dietitian_id=user_id)


@app.put("/api/plans/{plan_id}", response_model=DietPlan)
def update_plan(plan_id: str, changes: DietPlanUpdate, user_id: str = Depends(current_user_id)):
    return diet_plan_service.update(plan_id, changes, dietitian_id=user_id)


@app.delete("/api/plans/{plan_id}", status_code=204)
def delete_plan(plan_id: str, user_id: str = Depends(current_user_id)):
    diet_plan_service.delete(plan_id, dietitian_id=user_id)


@app.get("/api/plans/{plan_id}/sections", response_model=List[PlanSection])
def get_plan_sections(plan_id: str, user_id: str = Depends(current_user_id)):
    return diet_plan_service.sections(plan_id, dietitian_id=user_id)


@app.get("/api/plans/{plan_id}/export", response_class=HTMLResponse)
def export_plan(plan_id: str, user_id: str = Depends(current_user_id)):
    """
    Printable, branded HTML for a stored plan.
    """
    plan = diet_plan_service.get(plan_id, dietitian_id=user_id)
    try:
        client_name = client_service.get(plan.client_id, dietitian_id=user_id).full_name
    except DocumentNotFoundError:
        client_name = None
    html = plan_renderer.render_document(
        plan_parser.parse(plan.generated_plan),
        branding=branding_service.get(user_id),
        title=plan.title,
        client_name=client_name
    )
    profile_service.record_export(user_id)
    return HTMLResponse(html)


# --- Branding & Profile ---

@app.get("/api/branding", response_model=BrandingSettings)
def get_branding(user_id: str = Depends(current_user_id)):
    return branding_service.get(user_id)


@app.put("/api/branding", response_model=BrandingSettings)
def save_branding(settings: BrandingSettings, user_id: str = Depends(current_user_id)):
    return branding_service.save(user_id, settings)


@app.post("/api/branding/logo", response_model=BrandingSettings)
def upload_logo(file: UploadFile = File(...), user_id: str = Depends(current_user_id)):
    """
    Upload a PNG, JPG or SVG logo (max 2MB) and use it in the caller's branding.
    """
    # One byte past the limit is enough to reject oversized files
    content = file.file.read(MAX_LOGO_BYTES + 1)
    return logo_service.upload(user_id, file.filename, file.content_type, content)


@app.delete("/api/branding/logo", response_model=BrandingSettings)
def delete_logo(user_id: str = Depends(current_user_id)):
    return logo_service.remove(user_id)


@app.get("/api/logos/{logo_id:path}")
def get_logo(logo_id: str):
    logo = logo_service.get(logo_id)
    return Response(
        content=logo["data"],
        media_type=logo["content_type"],
        headers={
            "X-Content-Type-Options": "nosniff",
            "Content-Security-Policy": "default-src 'none'; style-src 'unsafe-inline'"
        }
    )


@app.post("/api/profile", response_model=UserProfile, status_code=201)
def create_profile(data: UserProfileCreate, user_id: str = Depends(current_user_id)):
    return profile_service.create(user_id, data)


@app.get("/api/profile", response_model=UserProfile)
def get_profile(user_id: str = Depends(current_user_id)):
    return profile_service.get(user_id)


@app.put("/api/profile", response_model=UserProfile)
def update_profile(changes: UserProfileUpdate, user_id: str = Depends(current_user_id)):
    return profile_service.update(user_id, changes)


@app.post("/api/profile/onboarding-complete", response_model=UserProfile)
def complete_onboarding(user_id: str = Depends(current_user_id)):
    return profile_service.complete_onboarding(user_id)
