import os

# 쿠키 설정
DEVICE_COOKIE = "exam_device"
DEVICE_COOKIE_MAX_AGE = 30 * 24 * 3600   # 30일

# 세션 설정
DEVICE_STATE_TTL = 3600                  # 진행 중 시험 상태 보관 시간 (1시간)
CLEANUP_INTERVAL = 300                   # 만료 세션 정리 주기 (5분)

# CORS 설정
ALLOWED_ORIGINS = [o for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o]
