"""
FastAPI Application Module

HTTP surface of the website studio. A signed-in user starts a project from a
plain-language description, then refines the generated single-file website
through chat turns.

Key Features:
- Project chat with one Gemini generation per turn
- Local persistence of transcripts, generated code and saved projects
- Account flows through a pluggable identity provider
- Settings, language and data import/export
- Structured logging, Prometheus metrics and OpenTelemetry tracing

Each project allows a single generation at a time; a second submission while
one is running is rejected rather than queued.
"""

from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CollectorRegistry, Counter, generate_latest
from pydantic import BaseModel, Field
from structlog import get_logger

from ..config import load_config
from ..domain.errors import (
    AuthError,
    DataImportError,
    EmptyMessageError,
    GenerationInProgress,
    ProjectNotFound,
)
from ..domain.models import (
    AccessibilitySettings,
    CamelModel,
    ChatMessage,
    Language,
    Project,
    UserPreferences,
    UserProfile,
)
from ..domain.state import AppState
from ..i18n import translate
from ..repositories.base import KeyValueStore
from ..repositories.file import JsonFileStore
from ..repositories.memory import InMemoryStore
from ..repositories.preferences import PreferenceStore
from ..repositories.projects import ProjectStore
from ..services.auth import (
    AuthService,
    FirebaseIdentityProvider,
    IdentityProvider,
    InMemoryIdentityProvider,
    auth_error_message,
)
from ..services.chat import ChatService
from ..services.llm import CodeGenerationService

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter("requests_total", "Total requests", registry=CUSTOM_REGISTRY)
ERRORS = Counter("errors_total", "Total failed requests", registry=CUSTOM_REGISTRY)
GENERATIONS = Counter("generations_total", "Total generation turns", registry=CUSTOM_REGISTRY)

logger = get_logger()


class RegisterRequest(CamelModel):
    name: Optional[str] = None
    email: str
    password: str


class LoginRequest(CamelModel):
    email: str
    password: str


class ProfileUpdate(CamelModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")


class PasswordChange(CamelModel):
    current_password: str
    new_password: str


class AccountDelete(CamelModel):
    current_password: str


class ProjectCreate(BaseModel):
    """Opening request for a new project"""
    prompt: str


class AttachmentIn(BaseModel):
    name: str
    content: str


class MessageCreate(BaseModel):
    """Defines the structure for chat turn requests"""
    text: str
    attachments: List[AttachmentIn] = []


class TurnResponse(BaseModel):
    project: Project
    reply: ChatMessage


class SaveRequest(BaseModel):
    name: Optional[str] = None


class SaveResponse(BaseModel):
    project: Project
    message: str


class LanguageUpdate(BaseModel):
    language: Language


class LanguageResponse(BaseModel):
    language: Language
    direction: str


class ImportResponse(BaseModel):
    imported: int


def build_store(storage_path: Optional[str]) -> KeyValueStore:
    if storage_path:
        return JsonFileStore(storage_path)
    return InMemoryStore()


def build_identity_provider(backend: str, firebase_api_key: Optional[str]) -> IdentityProvider:
    if backend == "firebase":
        if not firebase_api_key:
            raise RuntimeError("FIREBASE_API_KEY is required for the firebase auth backend")
        return FirebaseIdentityProvider(firebase_api_key)
    return InMemoryIdentityProvider()


def load_state(preferences: PreferenceStore) -> AppState:
    return AppState(
        language=preferences.load_language(),
        settings=preferences.load_settings(),
        preferences=preferences.load_preferences(),
    )


# Core service instances
config = load_config()
store = build_store(config.storage_path)
project_store = ProjectStore(store)
preference_store = PreferenceStore(store)
chat_service = ChatService(
    project_store,
    CodeGenerationService(api_key=config.gemini_api_key, model_name=config.model),
)
auth_service = AuthService(build_identity_provider(config.auth_backend, config.firebase_api_key))
app_state = load_state(preference_store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles app startup/shutdown and resource management"""
    logger.info("application_startup_complete", model=config.model, auth_backend=config.auth_backend)

    yield

    await auth_service.aclose()
    logger.info("application_shutdown_complete")


def get_chat_service() -> ChatService:
    """Returns the project chat service"""
    return chat_service


def get_auth_service() -> AuthService:
    """Returns the account service"""
    return auth_service


def get_preference_store() -> PreferenceStore:
    """Returns the preference storage"""
    return preference_store


def get_app_state() -> AppState:
    """Returns the session state"""
    return app_state


def get_current_user(state: AppState = Depends(get_app_state)) -> UserProfile:
    """Rejects requests made while signed out"""
    if not state.signed_in:
        raise HTTPException(status_code=401, detail="Not signed in")
    return state.user


app = FastAPI(
    title="AVAN Studio API",
    description="Chat-driven website generation with Gemini",
    version="0.1.0",
    lifespan=lifespan,
)

# Enable cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Counts and logs requests"""
    logger.info("request_started", path=request.url.path, method=request.method)
    REQUESTS.inc()
    try:
        response = await call_next(request)
    except Exception as e:
        ERRORS.inc()
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise
    if response.status_code >= 500:
        ERRORS.inc()
    return response


def _auth_failure(e: AuthError, state: AppState) -> HTTPException:
    logger.warning("auth_failed", code=e.code)
    return HTTPException(status_code=400, detail=auth_error_message(e.code, state.language))


@app.post("/auth/register", response_model=UserProfile)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
    state: AppState = Depends(get_app_state),
) -> UserProfile:
    """Creates an account and signs it in"""
    try:
        state.user = await auth.register(body.name, body.email, body.password)
        return state.user
    except AuthError as e:
        raise _auth_failure(e, state)


@app.post("/auth/login", response_model=UserProfile)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
    state: AppState = Depends(get_app_state),
) -> UserProfile:
    """Signs in with email and password"""
    try:
        state.user = await auth.login(body.email, body.password)
        return state.user
    except AuthError as e:
        raise _auth_failure(e, state)


@app.post("/auth/logout", status_code=204)
async def logout(
    auth: AuthService = Depends(get_auth_service),
    state: AppState = Depends(get_app_state),
) -> Response:
    """Signs out and closes the current project"""
    await auth.logout()
    state.sign_out()
    return Response(status_code=204)


@app.put("/auth/profile", response_model=UserProfile)
async def update_profile(
    body: ProfileUpdate,
    user: UserProfile = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    state: AppState = Depends(get_app_state),
) -> UserProfile:
    """Updates display name and photo"""
    try:
        state.user = await auth.update_profile(body.display_name, body.photo_url)
        return state.user
    except AuthError as e:
        raise _auth_failure(e, state)


@app.post("/auth/password", status_code=204)
async def change_password(
    body: PasswordChange,
    user: UserProfile = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    state: AppState = Depends(get_app_state),
) -> Response:
    """Re-authenticates, then sets a new password"""
    try:
        await auth.change_password(body.current_password, body.new_password)
    except AuthError as e:
        raise _auth_failure(e, state)
    return Response(status_code=204)


@app.delete("/auth/account", status_code=204)
async def delete_account(
    body: AccountDelete,
    user: UserProfile = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    state: AppState = Depends(get_app_state),
) -> Response:
    """Re-authenticates, deletes the account and signs out"""
    try:
        await auth.delete_account(body.current_password)
    except AuthError as e:
        raise _auth_failure(e, state)
    state.sign_out()
    return Response(status_code=204)


@app.post("/projects", response_model=Project)
async def create_project(
    body: ProjectCreate,
    user: UserProfile = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
    state: AppState = Depends(get_app_state),
) -> Project:
    """
    Starts a project from the opening request and generates the first
    version of the website.
    """
    try:
        project = chat.create_project(body.prompt)
    except EmptyMessageError:
        raise HTTPException(status_code=400, detail="Prompt is empty")

    state.current_project_id = project.id
    try:
        project = await chat.start(project.id, state.language)
        GENERATIONS.inc()
        return project
    except Exception as e:
        logger.error("create_project_error", project_id=project.id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to create project")


@app.get("/projects/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    user: UserProfile = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
    state: AppState = Depends(get_app_state),
) -> Project:
    """Opens a project with its stored transcript and code"""
    try:
        project = chat.get_project(project_id)
    except ProjectNotFound:
        raise HTTPException(status_code=404, detail="Project not found")
    state.current_project_id = project.id
    return project


@app.post("/projects/{project_id}/messages", response_model=TurnResponse)
async def create_message(
    project_id: str,
    message: MessageCreate,
    user: UserProfile = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
    state: AppState = Depends(get_app_state),
) -> TurnResponse:
    """
    Runs one chat turn: the request goes to the model together with recent
    history and the current code, and the reply may replace the code.
    """
    try:
        project, reply = await chat.submit(
            project_id,
            message.text,
            state.language,
            [(a.name, a.content) for a in message.attachments],
        )
        GENERATIONS.inc()
        return TurnResponse(project=project, reply=reply)
    except EmptyMessageError:
        raise HTTPException(status_code=400, detail="Message is empty")
    except ProjectNotFound:
        raise HTTPException(status_code=404, detail="Project not found")
    except GenerationInProgress:
        raise HTTPException(status_code=409, detail="Generation already in progress")
    except Exception as e:
        logger.error("create_message_error", project_id=project_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to process message")


@app.get("/projects/{project_id}/code")
async def download_code(
    project_id: str,
    user: UserProfile = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
) -> Response:
    """Returns the generated website as index.html"""
    try:
        project = chat.get_project(project_id)
    except ProjectNotFound:
        raise HTTPException(status_code=404, detail="Project not found")
    if not project.code:
        raise HTTPException(status_code=404, detail="No code generated yet")
    return Response(
        content=project.code,
        media_type="text/html",
        headers={"Content-Disposition": 'attachment; filename="index.html"'},
    )


@app.post("/projects/{project_id}/save", response_model=SaveResponse)
async def save_project(
    project_id: str,
    body: SaveRequest,
    user: UserProfile = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
    state: AppState = Depends(get_app_state),
) -> SaveResponse:
    """Adds a snapshot of the project to the saved list"""
    try:
        project = chat.get_project(project_id)
    except ProjectNotFound:
        raise HTTPException(status_code=404, detail="Project not found")
    snapshot = chat.projects.save_project(project, body.name)
    return SaveResponse(project=snapshot, message=translate(state.language, "projectSaved"))


@app.get("/saved-projects", response_model=List[Project])
async def list_saved_projects(
    user: UserProfile = Depends(get_current_user),
    chat: ChatService = Depends(get_chat_service),
) -> List[Project]:
    """Lists saved projects, most recent first"""
    return chat.projects.list_saved_projects()


@app.get("/settings", response_model=AccessibilitySettings)
async def get_settings(state: AppState = Depends(get_app_state)) -> AccessibilitySettings:
    return state.settings


@app.put("/settings", response_model=AccessibilitySettings)
async def update_settings(
    settings: AccessibilitySettings,
    preferences: PreferenceStore = Depends(get_preference_store),
    state: AppState = Depends(get_app_state),
) -> AccessibilitySettings:
    state.settings = preferences.save_settings(settings)
    return state.settings


@app.post("/settings/accessibility/reset", response_model=AccessibilitySettings)
async def reset_accessibility(
    preferences: PreferenceStore = Depends(get_preference_store),
    state: AppState = Depends(get_app_state),
) -> AccessibilitySettings:
    """Turns every accessibility aid off, keeping theme and sound"""
    state.settings = preferences.save_settings(state.settings.reset_accessibility())
    return state.settings


@app.get("/language", response_model=LanguageResponse)
async def get_language(state: AppState = Depends(get_app_state)) -> LanguageResponse:
    return LanguageResponse(language=state.language, direction=state.language.direction)


@app.put("/language", response_model=LanguageResponse)
async def set_language(
    body: LanguageUpdate,
    preferences: PreferenceStore = Depends(get_preference_store),
    state: AppState = Depends(get_app_state),
) -> LanguageResponse:
    state.language = preferences.save_language(body.language)
    return LanguageResponse(language=state.language, direction=state.language.direction)


@app.get("/preferences", response_model=UserPreferences)
async def get_preferences(state: AppState = Depends(get_app_state)) -> UserPreferences:
    return state.preferences


@app.put("/preferences", response_model=UserPreferences)
async def update_preferences(
    body: UserPreferences,
    preferences: PreferenceStore = Depends(get_preference_store),
    state: AppState = Depends(get_app_state),
) -> UserPreferences:
    state.preferences = preferences.save_preferences(body)
    return state.preferences


@app.get("/data/export")
async def export_data(
    user: UserProfile = Depends(get_current_user),
    preferences: PreferenceStore = Depends(get_preference_store),
) -> Response:
    """Downloads everything in local storage as JSON"""
    return Response(
        content=preferences.export_data(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="avan_data.json"'},
    )


@app.post("/data/import", response_model=ImportResponse)
async def import_data(
    request: Request,
    user: UserProfile = Depends(get_current_user),
    preferences: PreferenceStore = Depends(get_preference_store),
    state: AppState = Depends(get_app_state),
) -> ImportResponse:
    """Loads an exported data file, overwriting matching keys"""
    payload = (await request.body()).decode("utf-8", errors="replace")
    try:
        imported = preferences.import_data(payload)
    except DataImportError:
        raise HTTPException(status_code=400, detail=translate(state.language, "invalidFileFormat"))

    state.language = preferences.load_language()
    state.settings = preferences.load_settings()
    state.preferences = preferences.load_preferences()
    return ImportResponse(imported=imported)


@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")
