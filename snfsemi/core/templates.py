"""
화면 렌더링 (Jinja2)
"""

from typing import Any, Dict, Optional
import os

from fastapi import Request
from fastapi.templating import Jinja2Templates

from snfsemi.core.config import settings


def get_package_root() -> str:
    """snfsemi 패키지 디렉토리 절대경로.
    이 파일은 snfsemi/core/templates.py 에 위치하므로 상위 디렉토리가 패키지 루트가 된다.
    """
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def get_templates_dir() -> str:
    return os.path.join(get_package_root(), "templates")


def get_static_dir() -> str:
    return os.path.join(get_package_root(), "static")


templates = Jinja2Templates(directory=get_templates_dir())


def render(
    request: Request,
    view: str,
    data: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
):
    """templates/<view>.html 렌더링. 모든 화면에 site_name 을 넣어준다"""
    context: Dict[str, Any] = {"site_name": settings.SITE_NAME}
    context.update(data or {})
    return templates.TemplateResponse(request, f"{view}.html", context, status_code=status_code)
