"""
api/app.py

응시 API 앱 조립: 세션 쿠키, 라우터, 정적 화면, 만료 세션 정리 스레드.
"""

import logging
import os
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

import api.session as session
from api.routes import close_backend_client, router
from config import SESSION_SWEEP_SECONDS, STATIC_DIR

SESSION_COOKIE = "exam_session"

logger = logging.getLogger(__name__)


def _sweep_sessions(stop: threading.Event, interval: float) -> None:
    while not stop.wait(interval):
        removed = session.cleanup_expired()
        if removed:
            logger.info(f"만료된 응시 세션 {removed}개 종료")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    stop = threading.Event()
    sweeper = threading.Thread(
        target=_sweep_sessions,
        args=(stop, SESSION_SWEEP_SECONDS),
        name="session-sweeper",
        daemon=True,
    )
    sweeper.start()
    try:
        yield
    finally:
        stop.set()
        close_backend_client()


async def _attach_session(request: Request, call_next):
    """요청마다 응시 세션 ID를 request.state에 붙이고 쿠키를 갱신한다."""
    sid = request.cookies.get(SESSION_COOKIE)
    if not sid or session.get_session(sid) is None:
        sid = session.create_session()
    request.state.session_id = sid

    response = await call_next(request)
    response.set_cookie(
        SESSION_COOKIE,
        sid,
        max_age=session.SESSION_TTL,
        httponly=True,
        samesite="lax",
    )
    return response


def create_app() -> FastAPI:
    app = FastAPI(title="Exam Engine", redoc_url=None, lifespan=_lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(_attach_session)
    app.include_router(router)

    if os.path.isdir(STATIC_DIR):
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    index_path = os.path.join(STATIC_DIR, "index.html")

    @app.get("/")
    async def index():
        # 화면 파일 없이 API만 띄운 경우 문서 위치를 알려준다
        if not os.path.exists(index_path):
            return {"error": "index.html이 없습니다.", "docs": "/docs"}
        return FileResponse(index_path)

    return app
