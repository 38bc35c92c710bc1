from datetime import datetime, timezone


def utc_now() -> datetime:
    # MongoDB는 밀리초 단위 UTC로 저장
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)
