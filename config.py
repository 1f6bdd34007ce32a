import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
STATIC_DIR = os.path.join(BASE_DIR, "static")
LOG_FILE = os.path.join(BASE_DIR, "launch.log")

# 로컬 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "0"))  # 0이면 빈 포트 자동 선택

# 백엔드 API 설정
API_BASE_URL = os.getenv("EXAM_API_BASE_URL", "http://localhost:5000")
AUTH_TOKEN = os.getenv("EXAM_AUTH_TOKEN", "")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15.0"))

EXAM_ENDPOINT = "/api/student/exams/{exam_id}"
RESULTS_ENDPOINT = "/api/student/exam-results"

# 시험 설정
SUBJECTS = ("maths", "physics", "chemistry")
TICK_SECONDS = 1.0
TIME_WARNING_SECONDS = 300  # 5분 미만이면 경고

# 세션 설정
SESSION_SWEEP_SECONDS = 300  # 만료 세션 정리 주기
