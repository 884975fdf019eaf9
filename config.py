import os

from dotenv import load_dotenv

load_dotenv()

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
LOG_FILE = os.path.join(BASE_DIR, "launch.log")
STORAGE_FILE = os.getenv("STORAGE_FILE", os.path.join(DATA_DIR, "local_storage.json"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "0.0.0.0")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 백엔드 설정 ("supabase" | "memory")
BACKEND = os.getenv("BACKEND", "supabase")
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")

# 시험 설정
PRACTICE_SHORT_COUNT = 65
EXAM_FULL_COUNT = 65
EXAM_SHORT_COUNT = 20
EXAM_FULL_SECONDS = 130 * 60
EXAM_SHORT_SECONDS = 20 * 60
SCORE_SCALE = 1000
PASS_SCORE = 720            # 1000점 만점 기준 72%

# 인증 설정
# 아이디 최소 길이는 화면마다 3/4로 달랐음 → 하나의 상수로 통일, 운영 확정 전까지 환경변수로 조정
USERNAME_MIN_LENGTH = int(os.getenv("USERNAME_MIN_LENGTH", "4"))
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
SESSION_MAX_AGE_DAYS = 7
EMAIL_DOMAIN = "awsmockexam.local"
