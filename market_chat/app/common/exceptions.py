from contextlib import contextmanager

from pymongo.errors import ConnectionFailure, ExecutionTimeout, PyMongoError
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError


class ChatError(Exception):
    default_code: str | None = None

    def __init__(self, *args, code=None, **kwargs):
        self.code = code or self.default_code
        super().__init__(*args, **kwargs)


class NotFoundError(ChatError):
    default_code = "NOT_FOUND"


class ForbiddenError(ChatError):
    default_code = "FORBIDDEN"


class InvariantViolationError(ChatError):
    default_code = "INVARIANT_VIOLATION"


class TransientStoreFailureError(ChatError):
    default_code = "TRANSIENT_STORE_FAILURE"


def is_transient_store_error(error: BaseException) -> bool:
    if isinstance(error, (ConnectionFailure, ExecutionTimeout)):
        return True
    if isinstance(error, PyMongoError) and error.has_error_label("TransientTransactionError"):
        return True
    return isinstance(error, (OperationalError, SQLAlchemyTimeoutError))


@contextmanager
def translate_store_errors(operation: str):
    """접속 끊김, 타임아웃 같은 드라이버 오류를 TransientStoreFailureError로 바꿔 올린다. 재시도는 하지 않는다."""
    try:
        yield
    except ChatError:
        raise
    except Exception as e:
        if is_transient_store_error(e):
            raise TransientStoreFailureError(f"{operation} 처리 중 저장소 오류가 발생했습니다: {e}") from e
        raise
