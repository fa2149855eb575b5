"""Preview server: boots the home page of a scaffolded project from its files.

The preview reads the tree the way the skeleton's HomePageHandler sees it at
runtime: the container from the wiring reference in ``config/container.php``,
router and renderer from the provider references in the config aggregator.
"""

from __future__ import annotations

import html
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from .aggregator import provider_references
from .catalog import LayoutSpec, Option, OptionCatalog, QuestionId, default_catalog
from .errors import InstallerError
from .fileio import read_text
from .state import STATE_FILENAME, SessionState

logger = logging.getLogger("skelkit.preview")

CONTAINER_FILE = "config/container.php"
WELCOME = "Congratulations! You have installed the mezzio skeleton application."
DOCS_URL = "https://docs.mezzio.dev/mezzio/"


class PreviewError(Exception):
    """The project tree cannot be booted."""


@dataclass
class ProjectInfo:
    layout: LayoutSpec
    container: Option
    router: Option
    renderer: Optional[Option] = None
    template: Optional[Path] = None


class HomePageData(BaseModel):
    welcome: str = WELCOME
    docsUrl: str = DOCS_URL
    containerName: str
    containerDocs: str
    routerName: str
    routerDocs: str


def _detect_container(text: str, catalog: OptionCatalog) -> Optional[Option]:
    for option in catalog.options_for(QuestionId.CONTAINER.value):
        if option.target and f"\\{option.target}" in text:
            return option
    return None


def _detect_provider(refs: list[str], question_id: str, catalog: OptionCatalog) -> Optional[Option]:
    for ref in refs:
        option = catalog.find_by_provider(question_id, ref)
        if option is not None:
            return option
    return None


def inspect_project(
    project_root: Path,
    catalog: Optional[OptionCatalog] = None,
    state_filename: str = STATE_FILENAME,
) -> ProjectInfo:
    """Work out which container, router and renderer the tree is wired for."""
    catalog = catalog or default_catalog()
    root = Path(project_root)

    state = SessionState.load(root, filename=state_filename)
    if state.layout is None:
        raise PreviewError("No install layout chosen")
    spec = catalog.layout(state.layout)

    container_path = root / CONTAINER_FILE
    if not container_path.exists():
        raise PreviewError(f"Container is not configured: {CONTAINER_FILE} missing")
    container = _detect_container(read_text(container_path), catalog)
    if container is None:
        raise PreviewError(f"Unrecognised container wiring in {CONTAINER_FILE}")

    refs = provider_references(read_text(root / spec.aggregator))
    router = _detect_provider(refs, QuestionId.ROUTER.value, catalog)
    if router is None:
        raise PreviewError("No router ConfigProvider registered in the config aggregator")

    renderer = _detect_provider(refs, QuestionId.TEMPLATE_ENGINE.value, catalog)
    template = None
    if renderer is not None:
        for pattern in renderer.files:
            if "/app/home-page." in pattern:
                template = root / spec.resolve(pattern)
        if template is None or not template.exists():
            raise PreviewError(f"Home page template missing for {renderer.name}")

    return ProjectInfo(layout=spec, container=container, router=router, renderer=renderer, template=template)


def render_home_page(info: ProjectInfo) -> str:
    """HTML equivalent of the skeleton's app::home-page template."""
    e = html.escape
    renderer = info.renderer
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>Home - mezzio</title>
</head>
<body>
<div class="container">
    <div class="mb-4 p-3 bg-light rounded-3">
        <h1>Welcome to <span class="mezzio">mezzio</span></h1>
        <p>{e(WELCOME)}</p>
    </div>

    <h2>Get started with {e(info.container.name)}</h2>
    <a href="{e(info.container.docs)}">Learn more</a>

    <h2>Routing with {e(info.router.name)}</h2>
    <a href="{e(info.router.docs)}">Learn more</a>

    <h2>Templating with {e(renderer.name if renderer else "")}</h2>
    <a href="{e(renderer.docs if renderer else "")}">Learn more</a>
</div>
</body>
</html>
"""


def create_preview_app(
    project_root: Path,
    catalog: Optional[OptionCatalog] = None,
    state_filename: str = STATE_FILENAME,
) -> FastAPI:
    """FastAPI app serving the scaffolded project's ``/`` and ``/api/ping``.

    The tree is inspected on every request, so further answers show up
    without restarting the app.
    """
    root = Path(project_root)
    app = FastAPI(title="skelkit preview")

    @app.get("/")
    def home_page():
        try:
            info = inspect_project(root, catalog, state_filename)
        except (PreviewError, InstallerError) as e:
            logger.warning("Preview of %s failed: %s", root, e)
            raise HTTPException(status_code=500, detail=str(e))

        if info.renderer is not None:
            return HTMLResponse(render_home_page(info))

        return HomePageData(
            containerName=info.container.name,
            containerDocs=info.container.docs,
            routerName=info.router.name,
            routerDocs=info.router.docs,
        )

    @app.get("/api/ping")
    def ping():
        return {"ack": int(time.time())}

    return app
