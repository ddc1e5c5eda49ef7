# tests/__init__.py

"""
AutoCare 스케줄링 API 의 테스트 스위트 패키지입니다.

- `conftest.py`: 테스트 DB 세션, 역할별 계정, 인증된 HTTP 클라이언트 등 공용 픽스처
- `test_main.py`: 루트/헬스체크, 공통 오류 응답 형식, ARQ 워커 설정
- `test_validators.py`: 시프트 시간 규칙, 반복 요일, 시간대 변환 등 순수 함수 단위 테스트
- `test_policy.py`: 역할별 허용 동작과 조회 범위(AccessScope)
- `domains/`: usr / ctr / sch 도메인별 API 통합 테스트
"""

__title__ = "AutoCare Scheduling API Tests"
__version__ = "0.1.0"
__all__ = []
