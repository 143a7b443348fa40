import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from pydantic import BaseModel, ConfigDict

from edtech.core.config import Settings, settings as default_settings
from edtech.core.gateway import RemoteGateway, RestGateway
from edtech.services.course_store import CourseStore
from edtech.services.identity import IdentityContext
from edtech.services.students import StudentDirectory


# ============================================================================
# Logging Configuration
# ============================================================================
def setup_logging(settings: Settings = default_settings) -> logging.Logger:
    """Configure logging for the application."""
    log_level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )
    log_format = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] %(message)s"

    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    # Suppress verbose third-party logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("edtech")


# ============================================================================
# Composition Root
# ============================================================================
class AppContext(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: Settings
    gateway: RemoteGateway
    identity: IdentityContext
    store: CourseStore
    students: StudentDirectory


def build_context(
    settings: Settings = default_settings,
    gateway: Optional[RemoteGateway] = None,
) -> AppContext:
    gateway = gateway or RestGateway.from_settings(settings)
    identity = IdentityContext(gateway, settings)
    return AppContext(
        settings=settings,
        gateway=gateway,
        identity=identity,
        store=CourseStore(gateway, identity, settings),
        students=StudentDirectory(gateway),
    )


@asynccontextmanager
async def lifespan(
    settings: Settings = default_settings,
    gateway: Optional[RemoteGateway] = None,
) -> AsyncIterator[AppContext]:
    """Build the application objects and tear them down on exit."""
    logger = logging.getLogger("edtech")
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    context = build_context(settings, gateway)
    try:
        yield context
    finally:
        context.store.close()
        await context.identity.sign_out()
        await context.gateway.close()
        logger.info("✓ Application shutdown completed")
