"""
main.py

로컬에서 응시 서버를 띄우고 브라우저로 시험 화면을 연다.
  python main.py [--no-browser]
"""

import logging
import os
import socket
import sys
import threading
import time
import webbrowser

_HERE = os.path.dirname(os.path.abspath(__file__))
if _HERE not in sys.path:
    sys.path.insert(0, _HERE)

from config import API_BASE_URL, BASE_DIR, DEFAULT_HOST, DEFAULT_PORT, LOG_FILE

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("exam_engine.main")


def _configure_logging() -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    try:
        handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))
    except PermissionError:
        pass  # 로그 파일을 열 수 없으면 콘솔에만 기록
    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT, handlers=handlers)


def _pick_port() -> int:
    if DEFAULT_PORT:
        return DEFAULT_PORT
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((DEFAULT_HOST, 0))
        return sock.getsockname()[1]


def _port_open(port: int, timeout: float = 15.0) -> bool:
    """서버가 연결을 받기 시작할 때까지 대기. 시간 안에 못 열리면 False."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection((DEFAULT_HOST, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.1)
    return False


def _serve(port: int) -> None:
    import uvicorn
    from api.app import create_app

    try:
        uvicorn.run(create_app(), host=DEFAULT_HOST, port=port, log_level="warning")
    except Exception:
        logger.exception("응시 서버가 비정상 종료되었습니다.")


def main(argv: list[str]) -> int:
    _configure_logging()
    os.chdir(BASE_DIR)

    port = _pick_port()
    logger.info(f"응시 서버 기동 (port {port}, 백엔드 {API_BASE_URL})")
    threading.Thread(target=_serve, args=(port,), name="uvicorn", daemon=True).start()

    if not _port_open(port):
        logger.error(f"{port}번 포트에서 서버가 응답하지 않습니다.")
        return 1

    url = f"http://{DEFAULT_HOST}:{port}"
    logger.info(f"시험 화면: {url}")
    if "--no-browser" not in argv:
        webbrowser.open(url)

    try:
        while True:
            time.sleep(10)
    except KeyboardInterrupt:
        logger.info("종료합니다.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
