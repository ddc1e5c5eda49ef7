# app/utils/__init__.py

"""
특정 비즈니스 도메인에 속하지 않는 범용 유틸리티 패키지입니다.

주요 서브모듈:
- `timezone.py`: 서비스센터 현지 시간대와 UTC 사이의 변환, 날짜 순회/요일 계산.
"""

# flake8: noqa
from . import timezone

__title__ = "AutoCare Application Utilities"
__version__ = "0.1.0"
__all__ = ["timezone"]
