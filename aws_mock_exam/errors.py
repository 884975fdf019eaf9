"""
errors.py

서비스 계층 예외 정의.
각 예외는 HTTP 상태 코드와 사용자에게 보여줄 메시지를 함께 가진다.
api/app.py 의 예외 핸들러가 이 값을 그대로 응답으로 변환한다.
"""


class ExamAppError(Exception):
    """모든 서비스 예외의 기반 클래스."""

    status_code = 400
    default_message = "요청을 처리할 수 없습니다."

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


# ── 검증 오류 (재시도 없음, 즉시 표시) ───────────────────────────────────────

class InputValidationError(ExamAppError, ValueError):
    status_code = 422
    default_message = "입력값이 올바르지 않습니다."


class ExamStateError(ExamAppError):
    status_code = 409
    default_message = "현재 시험 상태에서는 할 수 없는 동작입니다."


# ── 인증 / 권한 ─────────────────────────────────────────────────────────────

class InvalidCredentialsError(ExamAppError):
    status_code = 401
    default_message = "아이디 또는 비밀번호가 올바르지 않습니다."


class UsernameTakenError(ExamAppError):
    status_code = 409
    default_message = "이미 사용 중인 아이디입니다."


class AuthRequiredError(ExamAppError):
    status_code = 401
    default_message = "로그인이 필요합니다."


class SessionExpiredError(AuthRequiredError):
    default_message = "세션이 만료되었습니다. 다시 로그인해주세요."


class PermissionDeniedError(ExamAppError):
    status_code = 403
    default_message = "관리자 권한이 필요합니다."


# ── 데이터 / 백엔드 ─────────────────────────────────────────────────────────

class NotFoundError(ExamAppError):
    status_code = 404
    default_message = "요청한 항목을 찾을 수 없습니다."


class BackendError(ExamAppError, RuntimeError):
    status_code = 503
    default_message = "서버와 통신 중 오류가 발생했습니다. 잠시 후 다시 시도해 주세요."
