"""
services/countdown.py

시험 전체에 하나뿐인 카운트다운 타이머.
interval(기본 1초)마다 남은 시간을 정확히 1씩 줄이고, 0이 되는 tick에서
on_expire를 한 번 호출한다. stop() 이후에는 어떤 콜백도 호출하지 않는다.
"""

import logging
import threading
from typing import Callable, Optional

from config import TICK_SECONDS

logger = logging.getLogger(__name__)


def format_time(seconds: int) -> str:
    """초 → HH:MM:SS"""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class Countdown:
    def __init__(
        self,
        duration_seconds: int,
        on_tick: Optional[Callable[[int], None]] = None,
        on_expire: Optional[Callable[[], None]] = None,
        interval: float = TICK_SECONDS,
    ):
        self._remaining = max(0, int(duration_seconds))
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._interval = interval
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._expired = False

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    def start(self) -> None:
        """백그라운드 스레드로 카운트다운 시작. 남은 시간이 0이면 즉시 만료 처리."""
        if self._thread is not None or self._stop_event.is_set():
            return
        if self._remaining == 0:
            self._expire()
            return
        self._thread = threading.Thread(target=self._run, name="exam-countdown", daemon=True)
        self._thread.start()

    def stop(self) -> int:
        """정지 후 남은 시간 반환. 반환 이후 tick은 값을 바꾸지 않는다."""
        with self._lock:
            self._stop_event.set()
            return self._remaining

    def tick(self) -> None:
        """남은 시간을 1초 줄인다. 0이 되면 같은 tick 안에서 on_expire 호출."""
        with self._lock:
            if self._stop_event.is_set() or self._remaining == 0:
                return
            self._remaining -= 1
            remaining = self._remaining

        if self._on_tick:
            self._on_tick(remaining)
        if remaining == 0:
            self._expire()

    def _expire(self) -> None:
        with self._lock:
            if self._expired or self._stop_event.is_set():
                return
            self._expired = True
        self._stop_event.set()
        logger.info("카운트다운 만료")
        if self._on_expire:
            self._on_expire()

    def _run(self) -> None:
        # wait()가 True면 stop() 호출됨
        while not self._stop_event.wait(self._interval):
            try:
                self.tick()
            except Exception:
                logger.exception("타이머 콜백 처리 중 오류")
